import logging
import secrets
import string
from datetime import date, datetime, time

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.availability import parse_hhmm
from app.models.booking import Booking, BookingStatus, utc_naive_now
from app.models.user import User
from app.services.availability_service import price_for_duration, resolve_bookable_slots
from app.services.booking_status import BookingStateError, SlotUnavailableError, ensure_transition
from app.services.slot_service import available_times_for_date, is_date_selectable, today_local

logger = logging.getLogger(__name__)

_MEETING_ID_ALPHABET = string.digits + string.ascii_lowercase


def _format_price(amount: float) -> str:
    return f"${amount:g}"


def generate_meeting_link() -> str:
    meeting_id = "".join(secrets.choice(_MEETING_ID_ALPHABET) for _ in range(8))
    return f"{settings.meeting_link_base_url.rstrip('/')}/{meeting_id}"


def _set_status(booking: Booking, target: BookingStatus) -> None:
    ensure_transition(booking.status, target)
    logger.info("Booking %s: %s -> %s", booking.id, booking.status.value, target.value)
    booking.status = target
    booking.updated_at = utc_naive_now()


async def create_booking(
    session: AsyncSession,
    student: User,
    instructor: User,
    day: date,
    slot_time: str,
    topic: str,
    message: str | None = None,
    duration: str | None = None,
    today: date | None = None,
) -> Booking:
    """Create a PENDING booking for a slot the resolver currently offers.

    Raises SlotUnavailableError when the day/time/duration is not bookable.
    Two concurrent requests can still both pass this check.
    """
    today = today or today_local()
    template, resolved = await resolve_bookable_slots(session, instructor, today=today)
    if not is_date_selectable(day, today, template, resolved):
        raise SlotUnavailableError(f"{day.isoformat()} is not open for booking")
    if slot_time not in available_times_for_date(resolved, day):
        raise SlotUnavailableError(f"{day.isoformat()} {slot_time} is not available")

    duration = duration or settings.default_session_duration
    if duration not in template.session_durations:
        raise SlotUnavailableError(f"Session length '{duration}' is not offered")

    hour, minute = parse_hhmm(slot_time)
    booking = Booking(
        instructor_id=instructor.id,
        student_id=student.id,
        date=datetime.combine(day, time(hour, minute)),
        time=slot_time,
        duration=duration,
        price=_format_price(price_for_duration(template, duration)),
        status=BookingStatus.PENDING,
        topic=topic,
        message=message or "",
    )
    session.add(booking)
    await session.flush()
    logger.info(
        "Booking %s requested: student=%s instructor=%s %s %s",
        booking.id, student.id, instructor.id, day.isoformat(), slot_time,
    )
    if template.auto_accept:
        await accept_booking(session, booking)
    await session.refresh(booking)
    return booking


async def get_booking_for_participant(
    session: AsyncSession, booking_id: int, user_id: int
) -> Booking | None:
    """Booking if the user is its student or instructor, else None."""
    result = await session.execute(
        select(Booking).where(
            Booking.id == booking_id,
            or_(Booking.student_id == user_id, Booking.instructor_id == user_id),
        )
    )
    return result.scalar_one_or_none()


async def accept_booking(
    session: AsyncSession, booking: Booking, instructor_message: str | None = None
) -> Booking:
    _set_status(booking, BookingStatus.UPCOMING)
    booking.meeting_link = generate_meeting_link()
    booking.instructor_message = instructor_message or None
    await session.flush()
    return booking


async def decline_booking(
    session: AsyncSession, booking: Booking, reason: str | None = None
) -> Booking:
    if booking.status != BookingStatus.PENDING:
        raise BookingStateError("Only pending bookings can be declined")
    _set_status(booking, BookingStatus.CANCELLED)
    booking.cancellation_reason = reason or "Declined by instructor"
    await session.flush()
    return booking


async def cancel_booking(
    session: AsyncSession, booking: Booking, reason: str | None = None
) -> Booking:
    _set_status(booking, BookingStatus.CANCELLED)
    if reason:
        booking.cancellation_reason = reason
    await session.flush()
    return booking


async def complete_booking(session: AsyncSession, booking: Booking) -> Booking:
    _set_status(booking, BookingStatus.COMPLETED)
    await session.flush()
    return booking


async def add_recording(session: AsyncSession, booking: Booking, recording_url: str) -> Booking:
    if booking.status != BookingStatus.COMPLETED:
        raise BookingStateError("Recordings can only be added to completed sessions")
    booking.recording = recording_url
    booking.updated_at = utc_naive_now()
    await session.flush()
    return booking


async def submit_review(
    session: AsyncSession, booking: Booking, rating: int, comment: str
) -> Booking:
    if booking.status != BookingStatus.COMPLETED:
        raise BookingStateError("Can only review completed bookings")
    if booking.has_left_review:
        raise BookingStateError("This booking has already been reviewed")
    now = utc_naive_now()
    booking.review_rating = rating
    booking.review_comment = comment
    booking.review_created_at = now
    booking.has_left_review = True
    booking.updated_at = now
    await session.flush()
    return booking


async def delete_booking(session: AsyncSession, booking: Booking) -> None:
    if booking.status != BookingStatus.PENDING:
        raise BookingStateError("Only pending bookings can be deleted")
    await session.delete(booking)
    await session.flush()


async def _list_bookings(
    session: AsyncSession, where, status: BookingStatus | None
) -> list[Booking]:
    q = select(Booking).where(where).order_by(Booking.date, Booking.time)
    if status is not None:
        q = q.where(Booking.status == status)
    result = await session.execute(q)
    return list(result.scalars().all())


async def list_bookings_for_student(
    session: AsyncSession, student_id: int, status: BookingStatus | None = None
) -> list[Booking]:
    return await _list_bookings(session, Booking.student_id == student_id, status)


async def list_bookings_for_instructor(
    session: AsyncSession, instructor_id: int, status: BookingStatus | None = None
) -> list[Booking]:
    return await _list_bookings(session, Booking.instructor_id == instructor_id, status)
