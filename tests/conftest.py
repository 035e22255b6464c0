"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all DoseTrack tests.
Fixtures include database sessions, test clients, sample data and a fixed clock.
"""

import os
import sys
from datetime import datetime, date
from typing import Generator, Dict, Any, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Keep the application engine off disk
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, get_db, enable_sqlite_foreign_keys
from models import User, Medication, Category, DoseLog
from services.adherence_service import adherence_service
from app import app
from tests import NOW, TODAY


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    enable_sqlite_foreign_keys(engine)

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=test_engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client with database override"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ==================== CLOCK FIXTURES ====================

@pytest.fixture
def fixed_clock(monkeypatch) -> datetime:
    """Pin the shared adherence service clock to NOW"""
    monkeypatch.setattr(adherence_service, "clock", lambda: NOW)
    return NOW


@pytest.fixture
def set_clock(monkeypatch):
    """Pin the shared adherence service clock to a chosen instant"""
    def _set(instant: datetime) -> datetime:
        monkeypatch.setattr(adherence_service, "clock", lambda: instant)
        return instant
    return _set


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def sample_user_data() -> Dict[str, Any]:
    """Sample user data for creating test users"""
    return {
        "email": "jane.doe@example.com",
        "display_name": "Jane",
        "timezone": "UTC"
    }


@pytest.fixture
def test_user(db_session: Session, sample_user_data: Dict) -> User:
    """Create and return a test user"""
    user = User(**sample_user_data)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_user(db_session: Session) -> User:
    """A second user who owns nothing of test_user's"""
    user = User(email="other@example.com", display_name="Other", timezone="UTC")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(test_user: User) -> Dict[str, str]:
    return {"X-User-Id": str(test_user.id)}


@pytest.fixture
def test_medication(db_session: Session, test_user: User) -> Medication:
    """Once-daily medication (08:00) active since TODAY"""
    medication = Medication(
        user_id=test_user.id,
        name="Metformin",
        dose="500mg",
        frequency_per_day=1,
        start_date=TODAY
    )
    db_session.add(medication)
    db_session.commit()
    db_session.refresh(medication)
    return medication


@pytest.fixture
def twice_daily_medication(db_session: Session, test_user: User) -> Medication:
    """Twice-daily medication (08:00, 14:00) active since TODAY"""
    medication = Medication(
        user_id=test_user.id,
        name="Lisinopril",
        dose="10mg",
        frequency_per_day=2,
        start_date=TODAY
    )
    db_session.add(medication)
    db_session.commit()
    db_session.refresh(medication)
    return medication


@pytest.fixture
def test_category(db_session: Session, test_user: User) -> Category:
    category = Category(user_id=test_user.id, name="Heart")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def week_of_logs(db_session: Session, test_user: User) -> List[DoseLog]:
    """
    Once-daily medication over the 7 days ending TODAY - 1:
    taken every day except the third, which is recorded missed.
    """
    medication = Medication(
        user_id=test_user.id,
        name="Atorvastatin",
        dose="20mg",
        frequency_per_day=1,
        start_date=date(2024, 3, 3),
        end_date=date(2024, 3, 9)
    )
    db_session.add(medication)
    db_session.commit()

    logs = []
    for day in range(3, 10):
        scheduled = datetime(2024, 3, day, 8, 0)
        missed = day == 5
        logs.append(DoseLog(
            medication_id=medication.id,
            scheduled_time=scheduled,
            actual_time=scheduled.replace(minute=15),
            taken_on_time=not missed,
            reward_earned=not missed,
            missed=missed
        ))
    db_session.add_all(logs)
    db_session.commit()
    return logs


# ==================== MARKERS ====================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "api: mark test as an API test")
