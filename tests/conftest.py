import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.security import create_access_token
from app.database import Base, get_db
from app.main import app
from app.models.gym import Gym
from app.models.member import Member
from app.models.user import User
from app.services.attendance import check_in, check_out
from app.utils.password import hash_password

TEST_DB_PATH = "./test_attendance.db"
TEST_DB_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"

# NullPool: every session gets its own connection, so concurrent tests really race
engine = create_async_engine(TEST_DB_URL, poolclass=NullPool, connect_args={"timeout": 30})
TestingSession = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


async def override_get_db():
    async with TestingSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
async def setup_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


def pytest_sessionfinish(session, exitstatus):
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)


@pytest.fixture
async def db():
    async with TestingSession() as session:
        yield session


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def seed(db):
    gym = Gym(name="Iron Temple")
    other_gym = Gym(name="Flex Hall")
    db.add_all([gym, other_gym])
    await db.commit()

    users = {
        "admin": User(email="admin@irontemple.io", name="Admin", role="admin", gym_id=gym.id),
        "trainer": User(email="coach@irontemple.io", name="Coach", role="trainer", gym_id=gym.id),
        "member": User(email="riya@irontemple.io", name="Riya", role="member", gym_id=gym.id),
        "no_profile": User(email="ghost@irontemple.io", name="Ghost", role="member", gym_id=gym.id),
        "outsider": User(email="sam@flexhall.io", name="Sam", role="member", gym_id=other_gym.id),
        "other_admin": User(email="admin@flexhall.io", name="Flex Admin", role="admin", gym_id=other_gym.id),
    }
    for u in users.values():
        u.hashed_password = hash_password("gym-pass-123")
        db.add(u)
    await db.commit()

    members = {
        "member": Member(user_id=users["member"].id, gym_id=gym.id, name="Riya", email="riya@irontemple.io"),
        "walk_in": Member(user_id=None, gym_id=gym.id, name="Walk-in Wade"),
        "outsider": Member(user_id=users["outsider"].id, gym_id=other_gym.id, name="Sam", email="sam@flexhall.io"),
    }
    for m in members.values():
        db.add(m)
    await db.commit()

    return SimpleNamespace(gym=gym, other_gym=other_gym, users=users, members=members)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


def at(hour: int, minute: int = 0, day: int = 10) -> datetime:
    return datetime(2026, 3, day, hour, minute, tzinfo=timezone.utc)


async def visit(db, gym_id: int, member_id: int, start: datetime, minutes: int = 60, source: str = "button"):
    """A finished session from ``start`` lasting ``minutes``."""
    await check_in(db, gym_id, member_id, source, now=start)
    return await check_out(db, gym_id, member_id, now=start + timedelta(minutes=minutes))
