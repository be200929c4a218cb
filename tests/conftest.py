from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  註冊 table
from database import Base, build_engine, get_db
from core.locks import KeyedLock
from core.repository import InMemoryStopwatchRepository, SqlStopwatchRepository
from core.stopwatch_manager import StopwatchManager
from api.stopwatches import get_clock
from main import app


class ManualClock:
    """手動推進的時鐘"""

    def __init__(self, start=None):
        self.current = start or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def now(self):
        return self.current

    def advance(self, seconds):
        self.current = self.current + timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def memory_repository():
    return InMemoryStopwatchRepository()


@pytest.fixture
def manager(memory_repository, clock):
    return StopwatchManager(memory_repository, clock, KeyedLock())


@pytest.fixture
def db_session():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def sql_manager(db_session, clock):
    return StopwatchManager(SqlStopwatchRepository(db_session), clock, KeyedLock())


@pytest.fixture
def client(db_session, clock):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
