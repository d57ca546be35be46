import logging
import os
from typing import Optional

_QUIET_LOGGERS = ("passlib", "multipart")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure logging defaults for the auth core and quiet chatty libraries."""
    resolved = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("albumauth").setLevel(resolved)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
