"""Loguru configuration."""

import sys

from loguru import logger

from chambermerge.core.config import Settings, get_settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def configure_logging(settings: Settings | None = None, console: bool = True) -> None:
    """Configure loguru based on settings.

    Replaces the default stderr handler with a daily rotating file sink and,
    optionally, a colourised console sink.
    """
    settings = settings or get_settings()
    logger.remove()

    settings.log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        str(settings.log_dir / "chambermerge_{time:YYYY-MM-DD}.log"),
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        format=LOG_FORMAT,
    )

    if console:
        logger.add(
            sys.stderr,
            level="DEBUG" if settings.debug else settings.log_level,
            format=LOG_FORMAT,
            colorize=True,
        )
