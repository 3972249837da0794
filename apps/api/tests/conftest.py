"""
Pytest configuration and fixtures

IMPORTANT: Tests run against an in-memory SQLite database.
Tables are created fresh for each test and dropped afterwards, so
nothing leaks between tests.
"""
import pytest
import sys
import os
from datetime import datetime, timedelta, timezone

# Must be set before core.config is imported anywhere.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.pop("WORKOUT_PLANNER_API_KEY", None)
os.environ.pop("EXERCISES_API_KEY", None)

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.database import Base, SessionLocal, engine
from models import MoodLog, UserProfileRecord
from schemas import MoodSnapshot, UserProfile


@pytest.fixture(scope="function")
def db_session():
    """
    Create a database session on freshly created tables.

    All tables are dropped after the test completes.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def sample_profile():
    """Intermediate omnivore with a gym setup and no explicit targets."""
    return UserProfile(
        id="user-1",
        full_name="Test User",
        gender="female",
        age=32,
        height_cm=165,
        weight_kg=62,
        primary_goal="Build muscle",
        experience_level="Intermediate",
        activity_level="moderate",
        dietary_preference="omnivore",
        available_equipment=["Dumbbells", "Barbell", "Kettlebell", "Cable machine"],
    )


@pytest.fixture
def beginner_cut_profile():
    """Bodyweight-only beginner trying to lose weight."""
    return UserProfile(
        id="user-2",
        gender="male",
        age=30,
        height_cm=180,
        weight_kg=90,
        primary_goal="lose_weight",
        experience_level="beginner",
        activity_level="light",
        available_equipment=[],
    )


@pytest.fixture
def recent_mood():
    """Factory for mood snapshots created ``hours_ago`` hours before now."""
    def _make(mood="balanced", hours_ago=1, **fields):
        return MoodSnapshot(
            id=f"mood-{mood}",
            mood=mood,
            created_at=datetime.now(timezone.utc) - timedelta(hours=hours_ago),
            **fields,
        )
    return _make


@pytest.fixture
def test_user(db_session):
    """Persisted profile row matching ``sample_profile``."""
    record = UserProfileRecord(
        id="user-1",
        full_name="Test User",
        gender="female",
        age=32,
        height_cm=165,
        weight_kg=62,
        primary_goal="Build muscle",
        experience_level="Intermediate",
        activity_level="moderate",
        dietary_preference="omnivore",
        available_equipment=["Dumbbells", "Barbell"],
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture
def stressed_mood_log(db_session, test_user):
    """A stressed check-in logged an hour ago for ``test_user``."""
    log = MoodLog(
        user_id=test_user.id,
        mood="stressed",
        stress_level="high",
        tags=["work"],
        created_at=datetime.now(timezone.utc) - timedelta(hours=1),
    )
    db_session.add(log)
    db_session.commit()
    return log
