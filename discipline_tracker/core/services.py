"""
Service registry: wires repositories and services into the container.

Everything is registered lazily and built on first access, sharing one
session factory, catalog and timezone.

Usage:
    from discipline_tracker.core.services import setup_services, get_service

    session_factory = await init_database()
    setup_services(session_factory)
    reminders = get_service(Services.REMINDERS)
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import async_sessionmaker

from .container import get_container

logger = logging.getLogger(__name__)


class Services:
    """Constants for service names."""

    SETTINGS = "settings"
    SESSION_FACTORY = "session_factory"
    CATALOG = "catalog"
    TIMEZONE = "timezone"
    RECORD_REPOSITORY = "record_repository"
    NOTIFICATION_REPOSITORY = "notification_repository"
    SUBJECT_REPOSITORY = "subject_repository"
    DISCIPLINES = "disciplines"
    TEAM = "team"
    NOTIFICATIONS = "notifications"
    REMINDERS = "reminders"
    SCHEDULER_BACKEND = "scheduler_backend"
    SCHEDULER = "scheduler"


def setup_services(session_factory: async_sessionmaker) -> None:
    """
    Register all application services in the container.

    Call once at startup, after init_database() has produced the session
    factory.
    """
    container = get_container()

    # ========================================================================
    # Configuration
    # ========================================================================

    def create_settings(c):
        from .config import get_settings

        return get_settings()

    container.register(Services.SETTINGS, create_settings)
    container.register_instance(Services.SESSION_FACTORY, session_factory)

    def create_catalog(c):
        from ..domain.disciplines import load_catalog

        return load_catalog()

    container.register(Services.CATALOG, create_catalog)

    def create_timezone(c):
        from ..services.period import get_zone

        return get_zone(c.get(Services.SETTINGS).timezone)

    container.register(Services.TIMEZONE, create_timezone)

    # ========================================================================
    # Repositories
    # ========================================================================

    def create_record_repository(c):
        from ..infrastructure.repositories import SqlAlchemyWeeklyRecordRepository

        return SqlAlchemyWeeklyRecordRepository(
            c.get(Services.SESSION_FACTORY),
            c.get(Services.CATALOG),
            c.get(Services.TIMEZONE),
            retry_attempts=c.get(Services.SETTINGS).save_retry_attempts,
        )

    container.register(Services.RECORD_REPOSITORY, create_record_repository)

    def create_notification_repository(c):
        from ..infrastructure.repositories import SqlAlchemyNotificationRepository

        return SqlAlchemyNotificationRepository(c.get(Services.SESSION_FACTORY))

    container.register(Services.NOTIFICATION_REPOSITORY, create_notification_repository)

    def create_subject_repository(c):
        from ..infrastructure.repositories import SqlAlchemySubjectRepository

        return SqlAlchemySubjectRepository(c.get(Services.SESSION_FACTORY))

    container.register(Services.SUBJECT_REPOSITORY, create_subject_repository)

    # ========================================================================
    # Business Logic Services
    # ========================================================================

    def create_discipline_service(c):
        from ..services.discipline_service import DisciplineService

        return DisciplineService(
            c.get(Services.RECORD_REPOSITORY),
            c.get(Services.CATALOG),
            c.get(Services.TIMEZONE),
        )

    container.register(Services.DISCIPLINES, create_discipline_service)

    def create_team_service(c):
        from ..services.team_service import TeamService

        return TeamService(
            c.get(Services.RECORD_REPOSITORY),
            c.get(Services.SUBJECT_REPOSITORY),
            c.get(Services.CATALOG),
            c.get(Services.TIMEZONE),
        )

    container.register(Services.TEAM, create_team_service)

    def create_notification_service(c):
        from ..services.notification_service import NotificationService

        return NotificationService(
            c.get(Services.NOTIFICATION_REPOSITORY), c.get(Services.TIMEZONE)
        )

    container.register(Services.NOTIFICATIONS, create_notification_service)

    def create_reminder_service(c):
        from ..services.reminder_service import ReminderService

        settings = c.get(Services.SETTINGS)
        return ReminderService(
            records=c.get(Services.RECORD_REPOSITORY),
            subjects=c.get(Services.SUBJECT_REPOSITORY),
            notifications=c.get(Services.NOTIFICATIONS),
            catalog=c.get(Services.CATALOG),
            tz=c.get(Services.TIMEZONE),
            concurrency=settings.reminder_concurrency,
            timeout=settings.store_timeout_seconds,
            dedup=settings.reminder_dedup,
        )

    container.register(Services.REMINDERS, create_reminder_service)

    # ========================================================================
    # Scheduling
    # ========================================================================

    def create_scheduler_backend(c):
        from ..services.scheduler import APSchedulerBackend

        return APSchedulerBackend()

    container.register(Services.SCHEDULER_BACKEND, create_scheduler_backend)

    def create_scheduler(c):
        from ..services.scheduler import SchedulerService

        settings = c.get(Services.SETTINGS)
        return SchedulerService(
            backend=c.get(Services.SCHEDULER_BACKEND),
            reminders=c.get(Services.REMINDERS),
            notifications=c.get(Services.NOTIFICATIONS),
            timezone=settings.timezone,
            retention_days=settings.notification_retention_days,
        )

    container.register(Services.SCHEDULER, create_scheduler)

    logger.info("All services registered in container")


def get_service(name: str) -> Any:
    """
    Get a service by name from the container.

    Raises:
        KeyError: If service is not registered
    """
    return get_container().get(name)
