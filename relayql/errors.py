"""Custom exception hierarchy for relayQL.

All public errors inherit from RelayQLError so callers can catch the base
class for any relayQL-specific failure.

``FormatError`` and ``ValidationError`` are raised synchronously by the
model and builder layers, before any network interaction.
``TransportError`` is raised by :class:`~relayql.client.database.DatabaseClient`
when the remote call fails.
"""
from __future__ import annotations

from typing import Any


class RelayQLError(Exception):
    """Base exception for all relayQL errors."""


class FormatError(RelayQLError):
    """Raised when a wire value cannot be decoded into the query model.

    Covers unknown enumeration tokens (e.g. an operator ``"??"``) as well as
    structurally malformed payloads.

    Args:
        message: Human-readable description.
        value: The offending wire value.
    """

    def __init__(self, message: str, value: Any = None) -> None:
        super().__init__(message)
        self.value = value


class ValidationError(RelayQLError):
    """Raised when a caller-supplied value is rejected before transport.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. ``validation_error``).
        details: Extra context about the rejected input.
    """

    def __init__(
        self,
        message: str,
        code: str = "validation_error",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details: dict[str, Any] = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error payload."""
        return {
            "error": self.code,
            "message": str(self),
            "details": self.details,
        }


class TransportError(RelayQLError):
    """Raised when the remote service call fails or returns an error status.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (``network_error`` when the
            service did not supply one).
        status_code: HTTP status code, if a response was received.
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def __str__(self) -> str:
        status = f", Status: {self.status_code}" if self.status_code is not None else ""
        return f"{self.message} (Code: {self.code}{status})"
