"""
Argument checks shared by the services.
Failures raise InvalidArgumentError instead of leaking ValueError/KeyError.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

from policy_impact.exceptions import InvalidArgumentError

E = TypeVar("E", bound=Enum)


def require_identifier(value: Any, field: str) -> str:
    """Return the identifier stripped of surrounding whitespace, or raise."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(
            f"{field} must be a non-empty string identifier",
            details={"field": field, "value": repr(value)},
        )
    return value.strip()


def coerce_enum(enum_cls: type[E], value: Any, field: str) -> E:
    """Accept an enum member or its raw value; reject anything else."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidArgumentError(
            f"Invalid {field} '{value}' (expected one of: {allowed})",
            details={"field": field, "value": repr(value)},
        ) from None
