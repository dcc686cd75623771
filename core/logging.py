"""
Logging configuration

Adds a SUCCESS level between INFO and WARNING; the ingestion job logger
uses it for completed jobs.
"""

import logging
import sys
from typing import Optional
from core.config import settings

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# third-party loggers kept at WARNING
NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "httpx", "httpcore", "apscheduler")


def setup_logging(level: Optional[str] = None):
    """Configure the root logger; ``level`` overrides LOG_LEVEL"""
    name = (level or settings.LOG_LEVEL).upper()
    log_level = logging.getLevelName(name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configured at {logging.getLevelName(log_level)} level")
