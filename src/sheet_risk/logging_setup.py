"""Process-wide logging setup for the CLI and the queue handler."""

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str | int] = None) -> None:
    """Configure root logging once. Level defaults to $LOG_LEVEL, then INFO."""
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
    # SDK request logs are noisy at INFO
    for name in ("httpx", "openai", "pymongo"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
