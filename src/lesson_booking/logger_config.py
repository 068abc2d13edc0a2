"""Centralized logging configuration."""

import sys

from loguru import logger

from lesson_booking.config import Settings


log_format = " | ".join(
    (
        "<lk>{time:YYYY-MM-DD HH:mm:ss.SSS}</>",
        "<lvl>{level:<8}</>",
        "<c>{name}::{function}:{line}</>",
        "{message}",
    )
)


def configure_logging(settings: Settings) -> None:
    logger.remove()  # drop the default stderr handler, ours replaces it
    logger.add(sys.stdout, format=log_format, level=settings.LOG_LEVEL)

    if settings.LOG_DIR:
        logger.add(
            f"{settings.LOG_DIR}/{{time:YYYY-MM-DD}}.log",
            format=log_format,
            level=settings.LOG_LEVEL,
            rotation="1 day",
            retention="30 days",
            compression="zip",
            enqueue=True,
        )
