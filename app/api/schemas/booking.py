from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from app.models.availability import parse_hhmm
from app.models.booking import BookingStatus


class BookSessionRequest(BaseModel):
    instructor_id: int
    topic: str = Field(min_length=1)
    message: str | None = None
    duration: str | None = None
    time: str
    date: date

    @field_validator("time")
    @classmethod
    def _check_time(cls, v: str) -> str:
        parse_hhmm(v)
        return v


class RespondRequest(BaseModel):
    message: str | None = None


class CancelRequest(BaseModel):
    reason: str | None = None


class RecordingRequest(BaseModel):
    recording_url: str = Field(min_length=1)


class ReviewRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str = ""


class ReviewPublic(BaseModel):
    rating: int
    comment: str
    created_at: datetime


class BookingPublic(BaseModel):
    id: int
    instructor_id: int
    student_id: int
    date: datetime
    time: str
    duration: str
    price: str
    status: BookingStatus
    topic: str
    message: str
    meeting_link: str | None = None
    recording: str | None = None
    cancellation_reason: str | None = None
    instructor_message: str | None = None
    has_left_review: bool = False
    review: ReviewPublic | None = None
    created_at: datetime
    updated_at: datetime
