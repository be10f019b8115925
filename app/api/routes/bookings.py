import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_instructor, get_current_user, get_session
from app.api.schemas.booking import (
    BookSessionRequest,
    BookingPublic,
    CancelRequest,
    RecordingRequest,
    RespondRequest,
    ReviewPublic,
    ReviewRequest,
)
from app.models.booking import Booking, BookingStatus
from app.models.user import User
from app.services.booking_service import (
    accept_booking,
    add_recording,
    cancel_booking,
    complete_booking,
    create_booking,
    decline_booking,
    delete_booking,
    get_booking_for_participant,
    list_bookings_for_instructor,
    list_bookings_for_student,
    submit_review,
)
from app.services.booking_status import BookingStateError, SlotUnavailableError
from app.services.email_service import (
    send_booking_accepted_email,
    send_booking_cancelled_email,
    send_booking_confirmed_email,
    send_booking_request_email,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bookings", tags=["bookings"])


def _to_public(b: Booking) -> BookingPublic:
    review = None
    if b.has_left_review and b.review_rating is not None:
        review = ReviewPublic(
            rating=b.review_rating,
            comment=b.review_comment or "",
            created_at=b.review_created_at or b.updated_at,
        )
    return BookingPublic(
        id=b.id,
        instructor_id=b.instructor_id,
        student_id=b.student_id,
        date=b.date,
        time=b.time,
        duration=b.duration,
        price=b.price,
        status=b.status,
        topic=b.topic,
        message=b.message,
        meeting_link=b.meeting_link,
        recording=b.recording,
        cancellation_reason=b.cancellation_reason,
        instructor_message=b.instructor_message,
        has_left_review=b.has_left_review,
        review=review,
        created_at=b.created_at,
        updated_at=b.updated_at,
    )


def _conflict(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


async def _load(session: AsyncSession, booking_id: int, user: User) -> Booking:
    booking = await get_booking_for_participant(session, booking_id, user.id)
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found or not yours",
        )
    return booking


async def _load_as_instructor(session: AsyncSession, booking_id: int, user: User) -> Booking:
    booking = await _load(session, booking_id, user)
    if booking.instructor_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the booked instructor can do this",
        )
    return booking


async def _load_as_student(session: AsyncSession, booking_id: int, user: User) -> Booking:
    booking = await _load(session, booking_id, user)
    if booking.student_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the student who booked can do this",
        )
    return booking


@router.post("", response_model=BookingPublic, status_code=status.HTTP_201_CREATED)
async def book_session(
    body: BookSessionRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> BookingPublic:
    instructor = await session.get(User, body.instructor_id)
    if not instructor or not instructor.is_instructor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Instructor not found")
    if instructor.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot book yourself")
    try:
        booking = await create_booking(
            session,
            student=current_user,
            instructor=instructor,
            day=body.date,
            slot_time=body.time,
            topic=body.topic,
            message=body.message,
            duration=body.duration,
        )
    except SlotUnavailableError as e:
        raise _conflict(e) from e
    if booking.status == BookingStatus.UPCOMING:
        # Auto-accepted: nothing left for the instructor to decide
        background_tasks.add_task(
            send_booking_accepted_email,
            to_email=current_user.email,
            student_name=current_user.full_name,
            session_date=booking.date,
            slot_time=booking.time,
            duration=booking.duration,
            meeting_link=booking.meeting_link,
        )
        background_tasks.add_task(
            send_booking_confirmed_email,
            to_email=instructor.email,
            instructor_name=instructor.full_name,
            student_name=current_user.full_name,
            session_date=booking.date,
            slot_time=booking.time,
            duration=booking.duration,
            topic=booking.topic,
            meeting_link=booking.meeting_link,
        )
        return _to_public(booking)
    background_tasks.add_task(
        send_booking_request_email,
        to_email=instructor.email,
        instructor_name=instructor.full_name,
        student_name=current_user.full_name,
        session_date=booking.date,
        slot_time=booking.time,
        duration=booking.duration,
        topic=booking.topic,
        message=booking.message,
    )
    return _to_public(booking)


@router.get("", response_model=list[BookingPublic])
async def list_my_bookings(
    status_filter: BookingStatus | None = Query(None, alias="status"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[BookingPublic]:
    bookings = await list_bookings_for_student(session, current_user.id, status=status_filter)
    return [_to_public(b) for b in bookings]


@router.get("/instructor", response_model=list[BookingPublic])
async def list_instructor_bookings(
    status_filter: BookingStatus | None = Query(None, alias="status"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_instructor),
) -> list[BookingPublic]:
    bookings = await list_bookings_for_instructor(session, current_user.id, status=status_filter)
    return [_to_public(b) for b in bookings]


@router.post("/{booking_id}/accept", response_model=BookingPublic)
async def accept(
    booking_id: int,
    background_tasks: BackgroundTasks,
    body: RespondRequest | None = None,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> BookingPublic:
    booking = await _load_as_instructor(session, booking_id, current_user)
    try:
        booking = await accept_booking(session, booking, body.message if body else None)
    except BookingStateError as e:
        raise _conflict(e) from e
    student = await session.get(User, booking.student_id)
    if student:
        background_tasks.add_task(
            send_booking_accepted_email,
            to_email=student.email,
            student_name=student.full_name,
            session_date=booking.date,
            slot_time=booking.time,
            duration=booking.duration,
            meeting_link=booking.meeting_link,
            instructor_message=booking.instructor_message,
        )
    return _to_public(booking)


@router.post("/{booking_id}/decline", response_model=BookingPublic)
async def decline(
    booking_id: int,
    background_tasks: BackgroundTasks,
    body: RespondRequest | None = None,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> BookingPublic:
    booking = await _load_as_instructor(session, booking_id, current_user)
    try:
        booking = await decline_booking(session, booking, body.message if body else None)
    except BookingStateError as e:
        raise _conflict(e) from e
    student = await session.get(User, booking.student_id)
    if student:
        background_tasks.add_task(
            send_booking_cancelled_email,
            to_email=student.email,
            recipient_name=student.full_name,
            session_date=booking.date,
            slot_time=booking.time,
            duration=booking.duration,
            reason=booking.cancellation_reason,
        )
    return _to_public(booking)


@router.post("/{booking_id}/cancel", response_model=BookingPublic)
async def cancel(
    booking_id: int,
    background_tasks: BackgroundTasks,
    body: CancelRequest | None = None,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> BookingPublic:
    """Either participant may cancel a pending or upcoming booking."""
    booking = await _load(session, booking_id, current_user)
    try:
        booking = await cancel_booking(session, booking, body.reason if body else None)
    except BookingStateError as e:
        raise _conflict(e) from e
    other_id = booking.instructor_id if current_user.id == booking.student_id else booking.student_id
    other = await session.get(User, other_id)
    if other:
        background_tasks.add_task(
            send_booking_cancelled_email,
            to_email=other.email,
            recipient_name=other.full_name,
            session_date=booking.date,
            slot_time=booking.time,
            duration=booking.duration,
            reason=booking.cancellation_reason,
        )
    return _to_public(booking)


@router.post("/{booking_id}/complete", response_model=BookingPublic)
async def complete(
    booking_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> BookingPublic:
    booking = await _load_as_instructor(session, booking_id, current_user)
    try:
        booking = await complete_booking(session, booking)
    except BookingStateError as e:
        raise _conflict(e) from e
    return _to_public(booking)


@router.post("/{booking_id}/recording", response_model=BookingPublic)
async def recording(
    booking_id: int,
    body: RecordingRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> BookingPublic:
    booking = await _load_as_instructor(session, booking_id, current_user)
    try:
        booking = await add_recording(session, booking, body.recording_url)
    except BookingStateError as e:
        raise _conflict(e) from e
    return _to_public(booking)


@router.post("/{booking_id}/review", response_model=BookingPublic)
async def review(
    booking_id: int,
    body: ReviewRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> BookingPublic:
    booking = await _load_as_student(session, booking_id, current_user)
    try:
        booking = await submit_review(session, booking, body.rating, body.comment)
    except BookingStateError as e:
        raise _conflict(e) from e
    return _to_public(booking)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_booking(
    booking_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> None:
    booking = await _load_as_student(session, booking_id, current_user)
    try:
        await delete_booking(session, booking)
    except BookingStateError as e:
        raise _conflict(e) from e
