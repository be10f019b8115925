import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./unused.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENV", "test")
os.environ["BOOKING_TIMEZONE"] = "UTC"
os.environ["SMTP_HOST"] = ""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.core.db import get_session
from app.main import app
from app.models import User, UserRole


@pytest.fixture
async def session_maker(tmp_path):
    # Fresh sqlite file per test
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def client(session_maker):
    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def users(session_maker):
    async with session_maker() as session:
        instructor = User(
            email="ada@example.com",
            full_name="Ada Lovelace",
            role=UserRole.INSTRUCTOR,
            title="Solidity mentor",
            hourly_rate=80,
        )
        student = User(email="sam@example.com", full_name="Sam Student")
        other = User(email="olivia@example.com", full_name="Olivia Other")
        session.add_all([instructor, student, other])
        await session.commit()
        return {"instructor": instructor, "student": student, "other": other}
