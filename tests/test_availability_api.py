import pytest

from app.services.slot_service import js_day_of_week, today_local
from tests.utils import auth, next_saturday, next_weekday


def _template_body(day_of_week: int, **overrides) -> dict:
    body = {
        "slots": [
            {"day_of_week": day_of_week, "start_time": "14:00", "end_time": "15:00"},
            {"day_of_week": day_of_week, "start_time": "09:00", "end_time": "10:00"},
            {"day_of_week": day_of_week, "start_time": "11:30", "end_time": "12:30", "is_available": False},
        ],
        "buffer_time": 10,
        "advance_booking_days": 14,
        "session_durations": ["30 minutes", "60 minutes"],
        "pricing": {"30 minutes": 25, "60 minutes": 45},
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_default_availability_when_nothing_saved(client, users):
    instructor = users["instructor"]
    response = await client.get(f"/api/v1/instructors/{instructor.id}/availability")

    assert response.status_code == 200
    data = response.json()
    assert data["is_default"] is True
    assert len(data["slots"]) == 75
    assert data["pricing"] == {"60 minutes": 80}
    assert data["advance_booking_days"] == 30


@pytest.mark.asyncio
async def test_availability_for_non_instructor_is_404(client, users):
    response = await client.get(f"/api/v1/instructors/{users['student'].id}/availability")
    assert response.status_code == 404
    assert response.json()["detail"] == "Instructor not found"


@pytest.mark.asyncio
async def test_instructor_saves_template(client, users):
    instructor = users["instructor"]
    response = await client.put(
        "/api/v1/instructors/me/availability",
        json=_template_body(1),
        headers=auth(instructor),
    )
    assert response.status_code == 200
    assert response.json()["is_default"] is False

    response = await client.get(f"/api/v1/instructors/{instructor.id}/availability")
    data = response.json()
    assert data["is_default"] is False
    assert [s["id"] for s in data["slots"]] == ["1-14:00-15:00", "1-09:00-10:00", "1-11:30-12:30"]
    assert data["buffer_time"] == 10
    assert data["pricing"] == {"30 minutes": 25, "60 minutes": 45}


@pytest.mark.asyncio
async def test_save_requires_instructor(client, users):
    response = await client.put(
        "/api/v1/instructors/me/availability",
        json=_template_body(1),
        headers=auth(users["student"]),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_save_requires_token(client, users):
    response = await client.put("/api/v1/instructors/me/availability", json=_template_body(1))
    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"pricing": {"30 minutes": 25}},
        {"session_durations": []},
        {"advance_booking_days": 0},
        {"slots": [{"day_of_week": 1, "start_time": "10:00", "end_time": "09:30"}]},
        {"slots": [{"day_of_week": 7, "start_time": "10:00", "end_time": "10:30"}]},
    ],
)
async def test_save_rejects_invalid_template(client, users, overrides):
    response = await client.put(
        "/api/v1/instructors/me/availability",
        json=_template_body(1, **overrides),
        headers=auth(users["instructor"]),
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_overlapping_slots_are_accepted(client, users):
    body = _template_body(
        2,
        slots=[
            {"day_of_week": 2, "start_time": "09:00", "end_time": "10:00"},
            {"day_of_week": 2, "start_time": "09:30", "end_time": "10:30"},
        ],
    )
    response = await client.put(
        "/api/v1/instructors/me/availability", json=body, headers=auth(users["instructor"])
    )
    assert response.status_code == 200
    assert len(response.json()["slots"]) == 2


@pytest.mark.asyncio
async def test_toggle_slot(client, users):
    instructor = users["instructor"]
    response = await client.post(
        "/api/v1/instructors/me/availability/slots/1-10:00-10:30/toggle",
        headers=auth(instructor),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["is_default"] is False
    toggled = next(s for s in data["slots"] if s["id"] == "1-10:00-10:30")
    assert toggled["is_available"] is False

    response = await client.post(
        "/api/v1/instructors/me/availability/slots/0-01:00-01:30/toggle",
        headers=auth(instructor),
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_times_for_weekday_with_default_template(client, users):
    day = next_weekday(today_local())
    response = await client.get(
        f"/api/v1/instructors/{users['instructor'].id}/slots", params={"date": day.isoformat()}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["selectable"] is True
    assert len(data["times"]) == 15
    assert data["times"][0] == "09:00"
    assert data["times"][-1] == "16:00"


@pytest.mark.asyncio
async def test_weekend_is_not_selectable(client, users):
    day = next_saturday(today_local())
    response = await client.get(
        f"/api/v1/instructors/{users['instructor'].id}/slots", params={"date": day.isoformat()}
    )
    data = response.json()
    assert data["selectable"] is False
    assert data["times"] == []


@pytest.mark.asyncio
async def test_custom_template_times_sorted(client, users):
    instructor = users["instructor"]
    day = next_weekday(today_local())
    await client.put(
        "/api/v1/instructors/me/availability",
        json=_template_body(js_day_of_week(day)),
        headers=auth(instructor),
    )
    response = await client.get(
        f"/api/v1/instructors/{instructor.id}/slots", params={"date": day.isoformat()}
    )
    assert response.json()["times"] == ["09:00", "14:00"]


@pytest.mark.asyncio
async def test_available_dates_are_future_weekdays(client, users):
    today = today_local()
    response = await client.get(f"/api/v1/instructors/{users['instructor'].id}/slots/dates")
    assert response.status_code == 200
    data = response.json()
    assert data["today"] == today.isoformat()
    assert data["dates"]
    assert data["dates"] == sorted(data["dates"])
    assert all(d >= today.isoformat() for d in data["dates"])
    assert next_weekday(today).isoformat() in data["dates"]
