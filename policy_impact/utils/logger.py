"""Centralized logging configuration.
Call setup_logging() once at application startup.
"""

from __future__ import annotations

import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the engine. Unknown level names fall back to INFO."""
    root = logging.getLogger()
    # Avoid duplicate handlers on repeated calls
    if root.handlers:
        return

    numeric_level = logging.getLevelName(str(level).upper())
    unknown_level = not isinstance(numeric_level, int)
    if unknown_level:
        numeric_level = logging.INFO

    root.setLevel(numeric_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    formatter = logging.Formatter(
        fmt="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(funcName)s:%(lineno)d │ %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)

    # Quiet the driver; keep our code at the requested level
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    if unknown_level:
        logging.getLogger(__name__).warning(f"Unknown log level '{level}', using INFO")
