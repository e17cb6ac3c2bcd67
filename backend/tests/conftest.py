import json
from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from courtbook.database import get_db, make_engine
from courtbook.deps import get_clock
from courtbook.main import app
from courtbook.models.generated import AvailabilityRules, Base, Courts, Facilities
from courtbook.redis_client import get_redis
from courtbook.services import events
from courtbook.services.clock import FixedClock

# Sunday; the next day (2026-03-02) is a Monday
NOW = datetime(2026, 3, 1, 12, 0)
MONDAY = date(2026, 3, 2)
OWNER_ID = 1
PLAYER_ID = 2


class RecordingQueue:
    """Stands in for the Redis list the event emitter pushes to."""

    def __init__(self):
        self.items = []

    def rpush(self, key, value):
        self.items.append((key, json.loads(value)))
        return len(self.items)

    def types(self):
        return [event["type"] for _, event in self.items]


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def event_queue(monkeypatch):
    queue = RecordingQueue()
    monkeypatch.setattr(events, "redis_client", queue)
    return queue


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def court(db):
    """Facility owned by OWNER_ID with one court open Monday 09:00-18:00."""
    facility = Facilities(
        owner_id=OWNER_ID,
        name="Riverside Club",
        opening_hours=json.dumps({
            "monday": {"open": "09:00", "close": "18:00"},
            "saturday": {"open": "10:00", "close": "14:00"},
        }),
    )
    db.add(facility)
    db.flush()
    court = Courts(facility_id=facility.id, name="Court 1", price_per_hour=20.0)
    db.add(court)
    db.flush()
    db.add(AvailabilityRules(court_id=court.id, day_of_week=1, start_time=540, end_time=1080))
    db.commit()
    db.refresh(court)
    return court


@pytest.fixture
def client(session_factory, clock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: None
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()
