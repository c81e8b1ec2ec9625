"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes consistent across the codebase without
    forcing every error to carry every field.
    """

    code: str
    message: str
    hint: str
    route: str
    limit: int
    remaining: int
    reset_seconds: int
    window_ms: int
    backend: str
    error_type: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class RateLimitArgumentError(ValidationAppError):
    """Raised when a limiter is called with an empty identifier or a non-positive bound."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class RateLimitStoreError(AppError):
    """Raised by window stores when the shared store cannot be reached.

    The limiter converts this into a fail-open decision; it never reaches
    HTTP handlers.
    """


class RateLimitExceededError(AppError):
    """Raised by the HTTP layer when a caller has used up its quota."""
