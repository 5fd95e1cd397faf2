"""Exceptions raised by the discussion services.

Each error carries the HTTP status code the API layer answers with, so the
services stay independent of the web framework.
"""

from __future__ import annotations

# HTTP status codes
HTTP_BAD_REQUEST = 400
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404


class MetisError(RuntimeError):
    """Base exception for rejected discussion operations."""

    status_code: int = HTTP_BAD_REQUEST

    def __init__(self, message: str, *, entity: str | None = None, key: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.entity = entity
        self.key = key


class ConsistencyError(MetisError):
    """Request path and body (or stored data) disagree."""


class FeatureDisabledError(MetisError):
    """The course has discussions switched off."""


class NotFoundError(MetisError):
    """A referenced entity does not exist."""

    status_code = HTTP_NOT_FOUND


class AuthorizationError(MetisError):
    """The acting user lacks the required role or ownership."""

    status_code = HTTP_FORBIDDEN
