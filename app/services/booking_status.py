from app.models.booking import BookingStatus


class BookingStateError(Exception):
    """Requested change is not allowed for the booking's current state."""


class SlotUnavailableError(Exception):
    """The requested date/time cannot be booked."""


ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.UPCOMING, BookingStatus.CANCELLED}),
    BookingStatus.UPCOMING: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    if not can_transition(current, target):
        raise BookingStateError(
            f"Cannot move booking from {current.value} to {target.value}"
        )
