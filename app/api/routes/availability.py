from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_instructor, get_instructor_or_404, get_session
from app.api.schemas.availability import (
    AvailabilityResponse,
    AvailableDatesResponse,
    AvailableTimesResponse,
)
from app.models.availability import AvailabilityTemplate, AvailabilityTemplateUpdate
from app.models.user import User
from app.services.availability_service import (
    get_template_or_default,
    resolve_bookable_slots,
    save_availability_template,
    template_to_update,
    toggle_slot,
)
from app.services.slot_service import (
    available_times_for_date,
    dates_with_availability,
    is_date_selectable,
    today_local,
)

router = APIRouter(prefix="/instructors", tags=["availability"])


def _to_response(template: AvailabilityTemplate, is_default: bool) -> AvailabilityResponse:
    return AvailabilityResponse(**template.model_dump(), is_default=is_default)


@router.get("/{instructor_id}/availability", response_model=AvailabilityResponse)
async def get_availability(
    instructor: User = Depends(get_instructor_or_404),
    session: AsyncSession = Depends(get_session),
) -> AvailabilityResponse:
    """Weekly template for the instructor, or the Mon-Fri 9-17 default if none is saved."""
    template, is_default = await get_template_or_default(session, instructor)
    return _to_response(template, is_default)


@router.put("/me/availability", response_model=AvailabilityResponse)
async def update_my_availability(
    body: AvailabilityTemplateUpdate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_instructor),
) -> AvailabilityResponse:
    template = await save_availability_template(session, current_user.id, body)
    return _to_response(template, False)


@router.post("/me/availability/slots/{slot_id}/toggle", response_model=AvailabilityResponse)
async def toggle_my_slot(
    slot_id: str,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_instructor),
) -> AvailabilityResponse:
    template, _ = await get_template_or_default(session, current_user)
    updated = toggle_slot(template, slot_id)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Slot not found")
    saved = await save_availability_template(session, current_user.id, template_to_update(updated))
    return _to_response(saved, False)


@router.get("/{instructor_id}/slots/dates", response_model=AvailableDatesResponse)
async def available_dates(
    instructor: User = Depends(get_instructor_or_404),
    session: AsyncSession = Depends(get_session),
) -> AvailableDatesResponse:
    """Days within the booking window that still have at least one open slot."""
    today = today_local()
    template, resolved = await resolve_bookable_slots(session, instructor, today=today)
    dates = [
        d for d in dates_with_availability(resolved)
        if is_date_selectable(d, today, template, resolved)
    ]
    return AvailableDatesResponse(
        instructor_id=instructor.id,
        today=today.isoformat(),
        dates=[d.isoformat() for d in dates],
    )


@router.get("/{instructor_id}/slots", response_model=AvailableTimesResponse)
async def available_times(
    date_param: date = Query(..., alias="date"),
    instructor: User = Depends(get_instructor_or_404),
    session: AsyncSession = Depends(get_session),
) -> AvailableTimesResponse:
    today = today_local()
    template, resolved = await resolve_bookable_slots(session, instructor, today=today)
    selectable = is_date_selectable(date_param, today, template, resolved)
    return AvailableTimesResponse(
        date=date_param.isoformat(),
        selectable=selectable,
        times=available_times_for_date(resolved, date_param) if selectable else [],
    )
