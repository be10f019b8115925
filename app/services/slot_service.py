"""Availability resolution: weekly template -> concrete bookable slots.

Everything here is pure. Callers fetch the template and active bookings,
then compose::

    slots = exclude_booked_slots(project_to_date_range(template.slots), active)
    times = available_times_for_date(slots, day)
"""

from collections.abc import Iterable
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.models.availability import (
    AvailabilityTemplate,
    ResolvedSlot,
    WeeklySlot,
    minutes_of_day,
)
from app.models.booking import Booking

DEFAULT_DAYS = range(1, 6)  # Monday-Friday
DEFAULT_START_HOUR = 9
DEFAULT_END_HOUR = 17
DEFAULT_STEP_MINUTES = 30


def today_local() -> date:
    """Current calendar day in the configured booking timezone."""
    return datetime.now(ZoneInfo(settings.booking_timezone)).date()


def js_day_of_week(d: date) -> int:
    """Day of week with 0=Sunday .. 6=Saturday."""
    return (d.weekday() + 1) % 7


def start_of_week(d: date) -> date:
    """Sunday on or before d."""
    return d - timedelta(days=js_day_of_week(d))


def day_key(value: date | datetime) -> str:
    """Normalize a date or timestamp to its yyyy-MM-dd calendar day.

    Aware timestamps are first converted to the booking timezone; naive ones
    are taken as already local.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(settings.booking_timezone))
        value = value.date()
    return value.strftime("%Y-%m-%d")


def _fmt(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def end_time_for(start: str, step_minutes: int = DEFAULT_STEP_MINUTES) -> str:
    """End of a slot starting at `start` and lasting `step_minutes` (same day)."""
    end = minutes_of_day(start) + step_minutes
    if end >= 24 * 60:
        raise ValueError(f"slot starting {start} for {step_minutes} minutes runs past midnight")
    return _fmt(*divmod(end, 60))


def generate_default_slots() -> list[WeeklySlot]:
    """Mon-Fri, 30-minute slots starting 09:00 through 16:00."""
    slots: list[WeeklySlot] = []
    for day in DEFAULT_DAYS:
        for hour in range(DEFAULT_START_HOUR, DEFAULT_END_HOUR):
            for minute in (0, 30):
                # 16:30 is never offered
                if hour == DEFAULT_END_HOUR - 1 and minute == 30:
                    continue
                start = _fmt(hour, minute)
                slots.append(
                    WeeklySlot(
                        day_of_week=day,
                        start_time=start,
                        end_time=end_time_for(start),
                        is_available=True,
                    )
                )
    return slots


def generate_default_template(
    instructor_id: int, hourly_rate: float | None = None
) -> AvailabilityTemplate:
    duration = settings.default_session_duration
    return AvailabilityTemplate(
        instructor_id=instructor_id,
        slots=generate_default_slots(),
        buffer_time=settings.default_buffer_minutes,
        advance_booking_days=settings.default_advance_booking_days,
        session_durations=[duration],
        pricing={duration: hourly_rate or settings.default_hourly_rate},
        auto_accept=False,
    )


def project_to_date_range(
    slots: Iterable[WeeklySlot],
    horizon_weeks: int | None = None,
    today: date | None = None,
) -> list[ResolvedSlot]:
    """Project weekly slots onto concrete days.

    Starts at the Sunday of the current week, so days earlier this week are
    included; filter with is_date_selectable before showing them.
    """
    if horizon_weeks is None:
        horizon_weeks = settings.booking_horizon_weeks
    if horizon_weeks <= 0:
        return []
    anchor = start_of_week(today or today_local())
    by_day: dict[int, list[WeeklySlot]] = {}
    for slot in slots:
        if slot.is_available:
            by_day.setdefault(slot.day_of_week, []).append(slot)

    resolved: list[ResolvedSlot] = []
    seen: set[ResolvedSlot] = set()
    for offset in range(horizon_weeks * 7):
        candidate = anchor + timedelta(days=offset)
        for slot in by_day.get(js_day_of_week(candidate), []):
            # Slots sharing a start time offer one bookable time
            item = ResolvedSlot(date=candidate, time=slot.start_time)
            if item not in seen:
                seen.add(item)
                resolved.append(item)
    return resolved


def booking_key(booking: Booking) -> str:
    return f"{day_key(booking.date)}-{booking.time}"


def exclude_booked_slots(
    resolved: Iterable[ResolvedSlot], active_bookings: Iterable[Booking]
) -> list[ResolvedSlot]:
    """Drop resolved slots that an active booking already occupies.

    The caller filters bookings to PENDING/UPCOMING beforehand.
    """
    booked = {booking_key(b) for b in active_bookings if b.date and b.time}
    resolved = list(resolved)
    if not booked:
        return resolved
    return [s for s in resolved if f"{day_key(s.date)}-{s.time}" not in booked]


def available_times_for_date(resolved: Iterable[ResolvedSlot], day: date | datetime) -> list[str]:
    """Start times offered on the given calendar day, in wall-clock order."""
    key = day_key(day)
    times = [s.time for s in resolved if day_key(s.date) == key]
    return sorted(set(times), key=minutes_of_day)


def dates_with_availability(resolved: Iterable[ResolvedSlot]) -> list[date]:
    return sorted({s.date for s in resolved})


def is_date_selectable(
    day: date | datetime,
    today: date | datetime,
    template: AvailabilityTemplate,
    resolved: Iterable[ResolvedSlot],
) -> bool:
    if isinstance(day, datetime):
        day = day.date()
    if isinstance(today, datetime):
        today = today.date()
    if day < today:
        return False
    if day > today + timedelta(days=template.advance_booking_days):
        return False
    key = day_key(day)
    return any(day_key(s.date) == key for s in resolved)
