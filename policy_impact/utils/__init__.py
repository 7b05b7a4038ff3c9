from .logger import setup_logging
from .validation import require_identifier, coerce_enum

__all__ = ["setup_logging", "require_identifier", "coerce_enum"]
