"""
Error taxonomy shared by every feature.

Services raise these; `main.py` maps them to HTTP responses. Validation and
authorization errors are raised before any side effect. Nothing here is
retried automatically.
"""

from __future__ import annotations

from typing import Any


class InkwellError(Exception):
    status_code = 500

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, **self.details}


class ValidationError(InkwellError):
    """Missing title, content or slug, or an invalid editor operation."""

    status_code = 422


class AuthorizationError(InkwellError):
    """No identity, or a role that does not allow the operation."""

    status_code = 403


class NotFoundError(InkwellError):
    status_code = 404


class ConflictError(InkwellError):
    """Unique-key collisions and re-entrant saves."""

    status_code = 409


class PersistenceError(InkwellError):
    """A store call failed."""

    status_code = 502


class PartialFailure(InkwellError):
    """
    A multi-step sequence (tag replacement, upload batch) failed partway.

    `details` carries what did complete so the caller can tell the user.
    """

    status_code = 207
