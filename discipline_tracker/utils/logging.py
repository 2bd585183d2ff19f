import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import structlog


def setup_logging(log_level: str = "INFO", log_to_file: bool = True) -> None:
    """Set up logging for the tracker.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to rotating files in addition to console
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.set_exc_info,
            (
                structlog.processors.JSONRenderer()
                if log_to_file
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    if log_to_file:
        logs_dir = Path("logs")
        logs_dir.mkdir(exist_ok=True)

        app_handler = logging.handlers.RotatingFileHandler(
            logs_dir / "app.log", maxBytes=10 * 1024 * 1024, backupCount=5  # 10MB
        )
        app_handler.setLevel(logging.INFO)
        app_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
            )
        )
        root_logger.addHandler(app_handler)

        # Scheduled job runs get their own file
        jobs_handler = logging.handlers.RotatingFileHandler(
            logs_dir / "jobs.log", maxBytes=5 * 1024 * 1024, backupCount=10  # 5MB
        )
        jobs_handler.setLevel(logging.INFO)
        jobs_handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
        jobs_logger = logging.getLogger("scheduler.jobs")
        jobs_logger.addHandler(jobs_handler)
        jobs_logger.propagate = True

        error_handler = logging.handlers.RotatingFileHandler(
            logs_dir / "errors.log", maxBytes=5 * 1024 * 1024, backupCount=10  # 5MB
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s - %(exc_info)s"
            )
        )
        root_logger.addHandler(error_handler)

    # APScheduler logs every job execution at INFO
    logging.getLogger("apscheduler").setLevel(max(level, logging.WARNING))


def get_job_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Structured logger for scheduled job runs."""
    return structlog.get_logger(name or "scheduler.jobs")


def log_job_run(
    job: str,
    outcome: str,
    details: Optional[Dict[str, Any]] = None,
    logger: Optional[structlog.stdlib.BoundLogger] = None,
) -> None:
    """Record one job execution with its outcome and context.

    Args:
        job: Job name
        outcome: "ok", "failed" or "skipped"
        details: Extra context (result, error, duration)
    """
    if logger is None:
        logger = get_job_logger()

    context = {
        "job": job,
        "outcome": outcome,
        "timestamp": datetime.now().isoformat(),
        **(details or {}),
    }
    if outcome == "failed":
        logger.error("Scheduled job failed", **context)
    elif outcome == "skipped":
        logger.warning("Scheduled job skipped", **context)
    else:
        logger.info("Scheduled job finished", **context)
