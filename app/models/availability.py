import re
from datetime import date, datetime
from typing import Any, NamedTuple

from pydantic import field_validator, model_validator
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from app.models.booking import naive_datetime_column, utc_naive_now

_HHMM = re.compile(r"^(\d{2}):(\d{2})$")


def parse_hhmm(value: str) -> tuple[int, int]:
    """Parse a zero-padded 24h "HH:MM" string into (hour, minute)."""
    m = _HHMM.match(value or "")
    if not m:
        raise ValueError(f"expected HH:MM, got {value!r}")
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"time out of range: {value!r}")
    return hour, minute


def minutes_of_day(value: str) -> int:
    hour, minute = parse_hhmm(value)
    return hour * 60 + minute


class WeeklySlot(SQLModel):
    """Recurring availability rule: a day of week (0=Sunday) and a time range."""

    id: str | None = None
    day_of_week: int = Field(ge=0, le=6)
    start_time: str
    end_time: str
    is_available: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_hhmm(cls, v: str) -> str:
        parse_hhmm(v)
        return v

    @model_validator(mode="after")
    def _check_range(self) -> "WeeklySlot":
        if minutes_of_day(self.start_time) >= minutes_of_day(self.end_time):
            raise ValueError("start_time must be before end_time")
        if not self.id:
            self.id = f"{self.day_of_week}-{self.start_time}-{self.end_time}"
        return self


class ResolvedSlot(NamedTuple):
    """A concrete bookable (calendar day, start time) pair."""

    date: date
    time: str


class AvailabilityTemplate(SQLModel):
    instructor_id: int
    slots: list[WeeklySlot] = Field(default_factory=list)
    buffer_time: int = 15  # minutes; stored but not applied to slot generation
    advance_booking_days: int = 30
    session_durations: list[str] = Field(default_factory=list)
    pricing: dict[str, float] = Field(default_factory=dict)
    auto_accept: bool = False


class AvailabilityTemplateUpdate(SQLModel):
    slots: list[WeeklySlot]
    buffer_time: int = Field(default=15, ge=0)
    advance_booking_days: int = Field(default=30, ge=1)
    session_durations: list[str]
    pricing: dict[str, float]
    auto_accept: bool = False

    @model_validator(mode="after")
    def _check_pricing(self) -> "AvailabilityTemplateUpdate":
        if not self.session_durations:
            raise ValueError("at least one session duration is required")
        missing = [d for d in self.session_durations if d not in self.pricing]
        if missing:
            raise ValueError(f"missing price for duration(s): {', '.join(missing)}")
        return self


class InstructorSettings(SQLModel, table=True):
    """Persisted availability template, one row per instructor."""

    __tablename__ = "instructor_settings"
    instructor_id: int = Field(foreign_key="users.id", primary_key=True)
    slots: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    buffer_time: int = 15
    advance_booking_days: int = 30
    session_durations: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    pricing: dict[str, float] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    auto_accept: bool = False
    updated_at: datetime = Field(default_factory=utc_naive_now, sa_column=naive_datetime_column())
