"""Logging setup for the API server and command-line tools."""

import logging
from typing import Optional

from rsams.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger.

    Args:
        level: Log level name. Defaults to LOG_LEVEL from configuration.
    """
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
    # SQL echo is controlled by the engine, keep the library logger quiet
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
