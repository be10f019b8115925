from pydantic import BaseModel

from app.models.availability import WeeklySlot


class AvailabilityResponse(BaseModel):
    instructor_id: int
    slots: list[WeeklySlot]
    buffer_time: int
    advance_booking_days: int
    session_durations: list[str]
    pricing: dict[str, float]
    auto_accept: bool
    is_default: bool  # True when the instructor never saved settings


class AvailableDatesResponse(BaseModel):
    instructor_id: int
    today: str  # YYYY-MM-DD
    dates: list[str]


class AvailableTimesResponse(BaseModel):
    date: str  # YYYY-MM-DD
    selectable: bool
    times: list[str]  # HH:MM, ascending
