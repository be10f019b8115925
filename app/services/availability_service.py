import logging
from datetime import date

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.availability import (
    AvailabilityTemplate,
    AvailabilityTemplateUpdate,
    InstructorSettings,
    ResolvedSlot,
    WeeklySlot,
)
from app.models.booking import ACTIVE_STATUSES, Booking, utc_naive_now
from app.models.user import User
from app.services.slot_service import (
    exclude_booked_slots,
    generate_default_template,
    project_to_date_range,
)

logger = logging.getLogger(__name__)


def load_weekly_slots(raw_slots: list[dict], instructor_id: int | None = None) -> list[WeeklySlot]:
    """Validate stored slots one by one; a bad entry is skipped, not fatal."""
    slots: list[WeeklySlot] = []
    for raw in raw_slots or []:
        try:
            slots.append(WeeklySlot.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid weekly slot for instructor %s: %r (%s)",
                instructor_id, raw, e.errors()[0]["msg"],
            )
    return slots


def _to_template(row: InstructorSettings) -> AvailabilityTemplate:
    return AvailabilityTemplate(
        instructor_id=row.instructor_id,
        slots=load_weekly_slots(row.slots, row.instructor_id),
        buffer_time=row.buffer_time,
        advance_booking_days=row.advance_booking_days,
        session_durations=list(row.session_durations or []),
        pricing=dict(row.pricing or {}),
        auto_accept=row.auto_accept,
    )


async def get_availability_template(
    session: AsyncSession, instructor_id: int
) -> AvailabilityTemplate | None:
    row = await session.get(InstructorSettings, instructor_id)
    if row is None:
        return None
    return _to_template(row)


async def get_template_or_default(
    session: AsyncSession, instructor: User
) -> tuple[AvailabilityTemplate, bool]:
    """Returns (template, is_default)."""
    template = await get_availability_template(session, instructor.id)
    if template is not None:
        return template, False
    return generate_default_template(instructor.id, instructor.hourly_rate), True


async def save_availability_template(
    session: AsyncSession, instructor_id: int, data: AvailabilityTemplateUpdate
) -> AvailabilityTemplate:
    row = await session.get(InstructorSettings, instructor_id)
    if row is None:
        row = InstructorSettings(instructor_id=instructor_id)
        session.add(row)
    row.slots = [s.model_dump() for s in data.slots]
    row.buffer_time = data.buffer_time
    row.advance_booking_days = data.advance_booking_days
    row.session_durations = list(data.session_durations)
    row.pricing = dict(data.pricing)
    row.auto_accept = data.auto_accept
    row.updated_at = utc_naive_now()
    await session.flush()
    logger.info("Saved availability for instructor %s (%d slots)", instructor_id, len(data.slots))
    return _to_template(row)


def toggle_slot(template: AvailabilityTemplate, slot_id: str) -> AvailabilityTemplate | None:
    """Flip is_available for one slot. None when the id is unknown."""
    found = False
    slots: list[WeeklySlot] = []
    for slot in template.slots:
        if slot.id == slot_id:
            found = True
            slot = slot.model_copy(update={"is_available": not slot.is_available})
        slots.append(slot)
    if not found:
        return None
    return template.model_copy(update={"slots": slots})


def template_to_update(template: AvailabilityTemplate) -> AvailabilityTemplateUpdate:
    return AvailabilityTemplateUpdate(
        slots=template.slots,
        buffer_time=template.buffer_time,
        advance_booking_days=template.advance_booking_days,
        session_durations=template.session_durations,
        pricing=template.pricing,
        auto_accept=template.auto_accept,
    )


def price_for_duration(template: AvailabilityTemplate, duration: str) -> float:
    return template.pricing.get(duration, 0)


async def get_active_bookings(session: AsyncSession, instructor_id: int) -> list[Booking]:
    result = await session.execute(
        select(Booking).where(
            Booking.instructor_id == instructor_id,
            Booking.status.in_(ACTIVE_STATUSES),
        )
    )
    return list(result.scalars().all())


async def resolve_bookable_slots(
    session: AsyncSession, instructor: User, today: date | None = None
) -> tuple[AvailabilityTemplate, list[ResolvedSlot]]:
    template, _ = await get_template_or_default(session, instructor)
    active = await get_active_bookings(session, instructor.id)
    resolved = exclude_booked_slots(project_to_date_range(template.slots, today=today), active)
    return template, resolved
