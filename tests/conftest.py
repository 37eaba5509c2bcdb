import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="helmet-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DB_DIR}/test.db")
os.environ.setdefault("RL_ENABLED", "false")
os.environ.setdefault("ENABLE_NATS", "false")
os.environ.setdefault("STUDIO_TIMEZONE", "UTC")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from helmet_reservations.db import async_session_maker, engine, init_db
from helmet_reservations.main import app
from helmet_reservations.models import Course, Schedule, User
from helmet_reservations.services import reservations as lifecycle


@pytest_asyncio.fixture
async def db():
    await init_db(reset=True)
    async with async_session_maker() as session:
        yield session
    # pooled aiosqlite connections are tied to this test's event loop
    await engine.dispose()


@pytest.fixture(autouse=True)
def side_effects(monkeypatch):
    """Capture booking notifications, emails and events instead of sending them."""
    sent = {"emails": [], "notifications": [], "checkins": [], "cancellations": []}

    async def fake_email(**kwargs):
        sent["emails"].append(kwargs)

    async def fake_notification(evt):
        sent["notifications"].append(evt)

    async def fake_checkin(evt):
        sent["checkins"].append(evt)

    async def fake_cancellation(evt):
        sent["cancellations"].append(evt)

    monkeypatch.setattr(lifecycle, "send_reservation_email", fake_email)
    monkeypatch.setattr(lifecycle, "publish_notification", fake_notification)
    monkeypatch.setattr(lifecycle, "publish_checkin", fake_checkin)
    monkeypatch.setattr(lifecycle, "publish_cancellation", fake_cancellation)
    return sent


@pytest_asyncio.fixture
async def seeded(db):
    """Two coaches, a student, and a handful of schedules in different time shapes."""
    db.add_all([
        User(id="u1", first_name="Ada", last_name="Lovelace", email="ada@example.com"),
        User(id="u2", first_name="Grace", last_name="Hopper", email="grace@example.com"),
        Course(id="c1", title="Pole Basics", coach_id="coach-a"),
        Course(id="c2", title="Aerial Hoop", coach_id="coach-b"),
        Schedule(
            id="s1", course_id="c1", title="Pole Basics", location="Studio 1", created_by="coach-a",
            start_time="2026-03-02T18:00:00+00:00", end_time="2026-03-02T19:00:00+00:00",
        ),
        Schedule(
            id="s2", course_id="c1", title="Pole Basics", location="Studio 1", created_by="coach-a",
            # 2026-03-09T18:00:00Z as a store timestamp document
            start_time={"seconds": 1773079200, "nanoseconds": 0}, end_time={"seconds": 1773082800},
        ),
        Schedule(
            id="s3", course_id="c2", title="Aerial Hoop", location="Studio 2", created_by="coach-b",
            start_time="2026-03-03T10:00:00+00:00", end_time="2026-03-03T11:00:00+00:00",
        ),
    ])
    await db.commit()
    return db


@pytest_asyncio.fixture
async def client(db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
