"""Logging setup"""

import logging
from typing import Optional

from splitcore.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger for the package.

    Args:
        level: Logging level name; defaults to the configured LOG_LEVEL
    """
    settings = get_settings()
    logging.basicConfig(level=level or settings.log_level, format=LOG_FORMAT)

    if settings.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
