"""
Application lifespan management.

Handles startup and shutdown of all subsystems:
- Configuration validation
- Database initialization and health check
- Service container setup
- Scheduler registration
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from .core.config import get_settings
from .core.config_validator import log_config_summary, validate_config
from .core.container import ServiceContainer, get_container, reset_container
from .core.database import close_database, health_check, init_database
from .core.services import Services, setup_services
from .domain.errors import ConfigurationError
from .utils.logging import setup_logging
from .version import __version__

logger = logging.getLogger(__name__)


async def startup(
    database_url: Optional[str] = None,
    start_scheduler: bool = True,
    configure_logging: bool = True,
) -> ServiceContainer:
    """Bring the tracker up and return the populated service container."""
    settings = get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_to_file)

    logger.info(f"Discipline tracker {__version__} starting up...")

    config_errors = validate_config(settings)
    if config_errors:
        for err in config_errors:
            logger.error(f"Config validation error: {err}")
        raise ConfigurationError(
            f"Aborting startup due to {len(config_errors)} configuration error(s)"
        )
    log_config_summary(settings)

    try:
        session_factory = await init_database(database_url)
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    if not await health_check(session_factory):
        await close_database()
        raise ConfigurationError("Aborting startup: database health check failed")

    reset_container()
    setup_services(session_factory)
    container = get_container()

    if start_scheduler:
        await container.get(Services.SCHEDULER).initialize()

    logger.info("Discipline tracker started")
    return container


async def shutdown() -> None:
    """Stop the scheduler (if it was built) and release the database."""
    logger.info("Discipline tracker shutting down...")
    container = get_container()
    if container.has(Services.SCHEDULER):
        try:
            await container.get(Services.SCHEDULER).stop_all()
        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}", exc_info=True)

    await close_database()
    reset_container()
    logger.info("Discipline tracker stopped")


@asynccontextmanager
async def lifespan(
    database_url: Optional[str] = None,
    start_scheduler: bool = True,
    configure_logging: bool = True,
) -> AsyncIterator[ServiceContainer]:
    """Run ``startup`` on entry and ``shutdown`` on exit."""
    container = await startup(
        database_url, start_scheduler=start_scheduler, configure_logging=configure_logging
    )
    try:
        yield container
    finally:
        await shutdown()
