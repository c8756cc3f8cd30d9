# safewalk/core/logger.py
from loguru import logger
import sys

from safewalk.core.config import settings


def setup_logging(level: str = settings.LOG_LEVEL) -> None:
    """
    Configure application-wide logging using loguru.
    """
    # Remove default handler added by loguru
    logger.remove()

    logger.add(
        sys.stdout,
        level=level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        backtrace=True,
        diagnose=False,
    )


setup_logging()

__all__ = ["logger", "setup_logging"]
