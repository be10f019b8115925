from app.models.user import User, UserRole
from app.models.availability import (
    AvailabilityTemplate,
    AvailabilityTemplateUpdate,
    InstructorSettings,
    ResolvedSlot,
    WeeklySlot,
)
from app.models.booking import ACTIVE_STATUSES, Booking, BookingStatus

__all__ = [
    "User",
    "UserRole",
    "AvailabilityTemplate",
    "AvailabilityTemplateUpdate",
    "InstructorSettings",
    "ResolvedSlot",
    "WeeklySlot",
    "ACTIVE_STATUSES",
    "Booking",
    "BookingStatus",
]
