from datetime import date, timedelta

from app.core.security import create_access_token
from app.models import User


def auth(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def next_weekday(today: date) -> date:
    """First Monday-Friday strictly after today."""
    d = today + timedelta(days=1)
    while d.weekday() >= 5:
        d += timedelta(days=1)
    return d


def next_saturday(today: date) -> date:
    d = today + timedelta(days=1)
    while d.weekday() != 5:
        d += timedelta(days=1)
    return d
