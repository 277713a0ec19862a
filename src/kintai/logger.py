"""
Logging setup for Kintai, built on loguru.

Modules obtain a logger bound to their name:

    from kintai.logger import get_logger
    logger = get_logger(__name__)
"""

import sys
from typing import Optional

from loguru import logger as _logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)

_logger.configure(extra={"name": "kintai"})


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Replace loguru's default sink with Kintai's format.

    Args:
        level: Minimum level for all sinks
        log_file: Optional path of a rotating log file
    """
    _logger.remove()
    _logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)

    if log_file:
        _logger.add(
            log_file,
            level=level.upper(),
            format=LOG_FORMAT,
            rotation="10 MB",
            retention=2,
            encoding="utf-8",
        )


def get_logger(name: str):
    """Return the shared logger bound to ``name``."""
    return _logger.bind(name=name)
