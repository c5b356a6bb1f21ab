# planning_poker/core/logging.py

import logging
import os
import sys


# Several instances can share one Redis; every line names the instance that wrote it
DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(instance)s | %(name)s | %(message)s"

QUIET_LOGGERS = {
    "redis": logging.WARNING,
    "asyncio": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


class InstanceFilter(logging.Filter):
    """Stamps each record with the id of the instance serving the rooms."""

    def __init__(self, instance_id: str):
        super().__init__()
        self.instance_id = instance_id

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "instance"):
            record.instance = self.instance_id
        return True


def setup_logging(instance_id: str = "-") -> None:
    """
    Configure application-wide logging.

    LOG_LEVEL picks the root level (default INFO). Records go to stdout
    tagged with `instance_id`, so the logs of instances that fan out room
    changes through the same Redis can be told apart. When a server has
    already installed handlers, only the level and the instance tag are
    applied to them.
    """
    log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, log_level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    if root_logger.handlers:
        for handler in root_logger.handlers:
            if not any(isinstance(f, InstanceFilter) for f in handler.filters):
                handler.addFilter(InstanceFilter(instance_id))
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    handler.addFilter(InstanceFilter(instance_id))
    root_logger.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Usage:
        from planning_poker.core.logging import get_logger

        logger = get_logger(__name__)
        logger.info("Room %s revealed", room_id)
    """
    return logging.getLogger(name)
