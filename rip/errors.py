"""Errors - Exception hierarchy for rip.

Dispatch never raises: transport, decode, hook and body-read failures are
attached to the Response as values of these types. Configuration failures
(bad base URL, unserializable body) are recorded on the Client and surface
at dispatch time, or eagerly via Client.raise_for_config().
"""

from __future__ import annotations


class RipError(Exception):
    """Base class for rip errors."""


class ConfigurationError(RipError):
    """Raised when a builder setting cannot be applied (e.g., malformed base URL)."""


class SerializationError(RipError):
    """Raised when request data cannot be converted to a body."""


class TransportError(RipError):
    """Raised when the HTTP call fails (connection error, timeout, bad URL, etc.).

    The underlying httpx exception is kept on `cause` and as __cause__.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class BodyReadError(TransportError):
    """Raised when the response body cannot be drained."""


class DecodeError(RipError):
    """Raised when a response body cannot be decoded into a target."""


class HookError(RipError):
    """Raised when the before_send hook fails."""
