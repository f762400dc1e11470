import sys

from loguru import logger

from aperture.core.config import settings


def setup_logging(level: str | None = None) -> None:
    """Route loguru to stderr at the configured level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.LOG_LEVEL).upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}",
        backtrace=False,
        diagnose=settings.APP_ENV == "development",
    )
