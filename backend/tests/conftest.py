from datetime import date, datetime
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event as sa_event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from event_scheduler.database import get_session
from event_scheduler.main import app
from event_scheduler.models import Division, Event, LeagueScoringConfig, PlayingField, Team, TimeSlot

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. Use sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see tests/__init__.py)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables created per test and dropped afterwards
# 6. Foreign keys enforced, as on PostgreSQL
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@sa_event.listens_for(test_engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    dbapi_connection.execute("PRAGMA foreign_keys=ON")


# Monday
EVENT_DAY = date(2026, 3, 2)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place for the entire
    duration, so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def seed_event(
    session: Session,
    event_type: str = "TOURNAMENT",
    team_counts: Optional[List[int]] = None,
    field_count: int = 1,
    start_minutes: int = 8 * 60,
    end_minutes: int = 20 * 60,
    days_of_week: Optional[List[int]] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    playoff_team_count: int = 0,
    scoring_config: Optional[LeagueScoringConfig] = None,
    **event_kwargs,
) -> Event:
    """
    Persist an event with divisions, seeded teams, fields and one weekly time slot.

    team_counts: one entry per division; a single entry creates one division.
    Teams are named "D{n}-T{k}" with seed k.
    """
    if scoring_config is not None:
        session.add(scoring_config)
        session.commit()
        session.refresh(scoring_config)
        event_kwargs["scoring_config_id"] = scoring_config.id

    event_kwargs.setdefault("match_duration_minutes", 60)
    event = Event(
        name="Spring Event",
        event_type=event_type,
        start=start or datetime(2026, 3, 2, 0, 0),
        end=end or datetime(2026, 3, 2, 23, 0),
        **event_kwargs,
    )
    session.add(event)
    session.commit()
    session.refresh(event)

    for d, count in enumerate(team_counts or [4], start=1):
        division = Division(event_id=event.id, name=f"Division {d}", sort_order=d, playoff_team_count=playoff_team_count)
        session.add(division)
        session.commit()
        session.refresh(division)
        for k in range(1, count + 1):
            session.add(Team(event_id=event.id, division_id=division.id, name=f"D{d}-T{k}", seed=k))
        session.commit()

    field_ids = []
    for n in range(1, field_count + 1):
        playing_field = PlayingField(event_id=event.id, field_number=n, name=f"Field {n}")
        session.add(playing_field)
        session.commit()
        session.refresh(playing_field)
        field_ids.append(playing_field.id)

    session.add(
        TimeSlot(
            event_id=event.id,
            days_of_week=days_of_week if days_of_week is not None else [EVENT_DAY.weekday()],
            start_time_minutes=start_minutes,
            end_time_minutes=end_minutes,
            start_date=EVENT_DAY,
            scheduled_field_ids=field_ids,
        )
    )
    session.commit()
    session.refresh(event)
    return event


@pytest.fixture
def make_event(session: Session):
    """Factory for seeded events bound to the test session"""

    def _make(**kwargs) -> Event:
        return seed_event(session, **kwargs)

    return _make
