import sys
from typing import Optional

from loguru import logger

from .settings import Settings

LOG_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | {name} | {message}"


def configure_logging(level: Optional[str] = None, sink=sys.stderr) -> int:
    """Replace loguru's default sink; returns the new handler id.

    ``level`` defaults to ``TOKENFLOW_LOG_LEVEL``.
    """
    level = level or Settings.from_env().log_level
    logger.remove()
    return logger.add(sink, level=level.upper(), format=LOG_FORMAT)
