"""
Logger factory for X-Ray.

Every module grabs its logger once at import time:

    from xray.utils.logger import get_logger

    logger = get_logger(__name__)

Applications call configure_logging() once at startup; library code
never installs handlers on its own.
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def get_logger(name: str) -> logging.Logger:
    """Return a named logger under the ``xray`` hierarchy."""
    if name == "xray" or name.startswith("xray."):
        return logging.getLogger(name)
    return logging.getLogger(f"xray.{name}")


def configure_logging(level: Optional[str] = None) -> None:
    """
    Install a single stdout handler on the ``xray`` logger.

    Safe to call more than once: existing handlers are replaced.
    """
    if level is None:
        from xray.config import settings
        level = settings.log_level

    root = logging.getLogger("xray")
    root.setLevel(level.upper())

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root.propagate = False

    # asyncpg is chatty at DEBUG
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
