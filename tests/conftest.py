import logging
import os
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

# Set test environment variables before any settings are cached
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["TIMEZONE"] = "Africa/Lagos"
# Keep a developer's local config/settings.yaml out of the tests
os.environ["CONFIG_SETTINGS_PATH"] = os.path.join(
    os.path.dirname(__file__), "no-such-settings.yaml"
)

TZ_NAME = "Africa/Lagos"


@pytest.fixture(autouse=True)
def _strip_file_handlers():
    """Remove file handlers from root logger so tests never write to logs/."""
    root = logging.getLogger()
    saved = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
    for h in saved:
        root.removeHandler(h)
    yield
    for h in list(root.handlers):
        if isinstance(h, logging.FileHandler):
            root.removeHandler(h)
    for h in saved:
        root.addHandler(h)


@pytest.fixture
def tz():
    return ZoneInfo(TZ_NAME)


@pytest.fixture
def catalog():
    from discipline_tracker.domain.disciplines import load_catalog

    return load_catalog()


@pytest.fixture
def local(tz):
    """Build an aware datetime in the test zone: local(2024, 1, 17, 9)."""

    def _make(*args) -> datetime:
        return datetime(*args, tzinfo=tz)

    return _make


@pytest.fixture
async def session_factory(tmp_path):
    """File-backed SQLite database with all tables, one connection per session."""
    from discipline_tracker.core.database import create_engine, create_session_factory
    from discipline_tracker.models.base import Base

    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def record_repo(session_factory, catalog, tz):
    from discipline_tracker.infrastructure.repositories import (
        SqlAlchemyWeeklyRecordRepository,
    )

    return SqlAlchemyWeeklyRecordRepository(session_factory, catalog, tz)


@pytest.fixture
def notification_repo(session_factory):
    from discipline_tracker.infrastructure.repositories import (
        SqlAlchemyNotificationRepository,
    )

    return SqlAlchemyNotificationRepository(session_factory)


@pytest.fixture
def subject_repo(session_factory):
    from discipline_tracker.infrastructure.repositories import SqlAlchemySubjectRepository

    return SqlAlchemySubjectRepository(session_factory)


@pytest.fixture
def notification_service(notification_repo, tz):
    from discipline_tracker.services.notification_service import NotificationService

    return NotificationService(notification_repo, tz)


@pytest.fixture
async def seed_subjects(subject_repo):
    """Two workers, one executive and one inactive worker."""
    from discipline_tracker.models.subject import Subject

    subjects = [
        Subject(id="w1", full_name="Ada Obi", email="ada@example.com", role="worker"),
        Subject(id="w2", full_name="Tunde Bello", email="tunde@example.com", role="worker"),
        Subject(id="x1", full_name="Grace Eze", email="grace@example.com", role="executive"),
        Subject(
            id="w3",
            full_name="Idle Worker",
            email="idle@example.com",
            role="worker",
            is_active=False,
        ),
    ]
    for subject in subjects:
        await subject_repo.upsert(subject)
    return subjects
