"""Logging configuration for the CLI and embedding hosts."""

import logging
import sys
from typing import Optional, TextIO

from .config import ServiceConfig

# Chatty at INFO/DEBUG once sixteen feeds are fetched per cycle
_NOISY_LOGGERS = ("urllib3", "charset_normalizer")


def setup_logging(
    config: Optional[ServiceConfig] = None,
    level: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> int:
    """
    Configure root logging from ``config.log_level``.

    Args:
        config: Service configuration; its ``log_level`` is used when ``level`` is None
        level: Explicit override (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Destination, stdout by default

    Returns:
        The numeric level that was applied
    """
    name = (level or (config or ServiceConfig()).log_level or "INFO").upper()
    log_level = logging.getLevelName(name)
    unknown = not isinstance(log_level, int)
    if unknown:
        log_level = logging.INFO

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    third_party_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(third_party_level)

    if unknown:
        logging.getLogger(__name__).warning(f"Unknown log level {name!r}, using INFO")
    return log_level
