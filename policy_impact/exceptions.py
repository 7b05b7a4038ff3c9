"""
Typed errors raised by the dependency and impact services.

Hierarchy:
    PolicyImpactError (base)
    ├── NotFoundError          → unknown policy or dependency record   (404)
    ├── ConflictError          → duplicate active dependency edge      (409)
    ├── InvalidArgumentError   → malformed id, out-of-enum value       (400)
    └── UnimplementedError     → declared but unsupported operation    (501)

`status_code` is a hint for whatever HTTP layer wraps the engine.
"""

from typing import Any, Dict, Optional


class PolicyImpactError(Exception):
    """Base exception for all engine errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class NotFoundError(PolicyImpactError):
    """Referenced policy or dependency record does not exist."""

    status_code = 404


class ConflictError(PolicyImpactError):
    """An active dependency already links this policy and entity."""

    status_code = 409


class InvalidArgumentError(PolicyImpactError):
    """Malformed identifier, out-of-enum value or unsupported format."""

    status_code = 400


class UnimplementedError(PolicyImpactError):
    """Operation is declared but intentionally not supported."""

    status_code = 501
