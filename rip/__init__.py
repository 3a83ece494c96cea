"""rip - fluent, immutable JSON REST client built on httpx."""

from rip.client import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, Client, fresh_transport, new
from rip.codec import JsonCodec, Ref
from rip.errors import (
    BodyReadError,
    ConfigurationError,
    DecodeError,
    HookError,
    RipError,
    SerializationError,
    TransportError,
)
from rip.response import Response

__all__ = [
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "BodyReadError",
    "Client",
    "ConfigurationError",
    "DecodeError",
    "HookError",
    "JsonCodec",
    "Ref",
    "Response",
    "RipError",
    "SerializationError",
    "TransportError",
    "fresh_transport",
    "new",
]
