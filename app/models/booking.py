from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


def utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def naive_datetime_column(nullable: bool = False, index: bool = False) -> Column:
    """TIMESTAMP WITHOUT TIME ZONE column; each table field needs its own instance."""
    return Column(DateTime(timezone=False), nullable=nullable, index=index)


class BookingStatus(str, Enum):
    PENDING = "pending"
    UPCOMING = "upcoming"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Bookings in these states still occupy their slot
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.UPCOMING)


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    id: int | None = Field(default=None, primary_key=True)
    instructor_id: int = Field(foreign_key="users.id", index=True)
    student_id: int = Field(foreign_key="users.id", index=True)
    # Local session start, naive
    date: datetime = Field(sa_column=naive_datetime_column(index=True))
    time: str
    duration: str
    price: str
    status: BookingStatus = Field(default=BookingStatus.PENDING, index=True)
    topic: str
    message: str = ""
    meeting_link: str | None = None
    recording: str | None = None
    cancellation_reason: str | None = None
    instructor_message: str | None = None
    has_left_review: bool = False
    review_rating: int | None = None
    review_comment: str | None = None
    review_created_at: datetime | None = Field(
        default=None, sa_column=naive_datetime_column(nullable=True)
    )
    created_at: datetime = Field(default_factory=utc_naive_now, sa_column=naive_datetime_column())
    updated_at: datetime = Field(default_factory=utc_naive_now, sa_column=naive_datetime_column())
