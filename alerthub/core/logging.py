"""
AlertHub - Logging Configuration
One stdout handler for the API process and its enrichment threads.
"""

import logging
import sys
from typing import Optional

from alerthub.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s:%(lineno)d | %(message)s"

# Loggers that are chatty at INFO and only interesting when something breaks
QUIET_LOGGERS = ("httpx", "httpcore", "multipart", "uvicorn.access")


def _level(name: str) -> int:
    return getattr(logging, name.upper())


def setup_logging(
    level: Optional[str] = None,
    worker_level: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the alerthub logger tree.

    Worker threads log under alerthub.worker; their level can be raised
    separately so a busy queue does not drown request logs.

    Args:
        level: Level for the alerthub loggers (DEBUG, INFO, ...)
        worker_level: Level for alerthub.worker, defaults to level

    Returns:
        The alerthub root logger
    """
    app_level = _level(level or settings.log_level)

    logging.basicConfig(
        level=app_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logger = logging.getLogger("alerthub")
    logger.setLevel(app_level)

    worker_level = worker_level or settings.worker_log_level
    logging.getLogger("alerthub.worker").setLevel(
        _level(worker_level) if worker_level else app_level
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.db_echo else logging.WARNING
    )

    return logger
