"""JSON codec - Converts request data to bytes and response bodies into targets.

Decode targets are caller-owned objects that get filled in place:
    - dict: cleared and updated (body must be a JSON object)
    - list: contents replaced (body must be a JSON array)
    - Ref: .value set; validated through pydantic when the Ref declares a type
    - pydantic BaseModel instance: validated against its class, fields copied over

Anything else is rejected with DecodeError.
"""

from __future__ import annotations

import json
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, PydanticUserError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_json

from rip.errors import DecodeError, SerializationError

T = TypeVar("T")


class Ref(Generic[T]):
    """Mutable holder used as an out-parameter.

    Usage:
        status = Ref(0)
        product = Ref(type=Product)
        client.get("product", 1).do(product).status_into(status)
        status.value, product.value
    """

    __slots__ = ("value", "type")

    def __init__(self, value: T | None = None, type: Any = None) -> None:
        self.value = value
        self.type = type

    def __repr__(self) -> str:
        return f"Ref({self.value!r})"


class JsonCodec:
    """Default JSON capability used by Client and Response."""

    def marshal(self, value: Any) -> bytes:
        """Serialize value to compact JSON bytes.

        Handles plain JSON types plus pydantic models, dataclasses, datetimes
        and UUIDs.

        Raises:
            SerializationError: If the value is not JSON serializable.
        """
        try:
            return to_json(value)
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise SerializationError(f"Cannot serialize {type(value).__name__} to JSON: {e}") from e

    def unmarshal(self, data: bytes, target: Any) -> None:
        """Decode JSON data into target in place.

        Raises:
            DecodeError: If data is not valid JSON, does not fit the target,
                or the target type is not supported.
        """
        if isinstance(target, Ref):
            target.value = self._decode_typed(data, target.type) if target.type else self._loads(data)
        elif isinstance(target, BaseModel):
            parsed = self._decode_typed(data, type(target))
            try:
                for name in type(target).model_fields:
                    setattr(target, name, getattr(parsed, name))
            except (ValidationError, TypeError, ValueError) as e:
                raise DecodeError(f"Cannot assign into {type(target).__name__}: {e}") from e
        elif isinstance(target, dict):
            value = self._loads(data)
            if not isinstance(value, dict):
                raise DecodeError(f"Expected JSON object, got {type(value).__name__}")
            target.clear()
            target.update(value)
        elif isinstance(target, list):
            value = self._loads(data)
            if not isinstance(value, list):
                raise DecodeError(f"Expected JSON array, got {type(value).__name__}")
            target[:] = value
        else:
            raise DecodeError(f"Unsupported decode target: {type(target).__name__}")

    def loads(self, data: bytes) -> Any:
        """Decode JSON data into plain Python values."""
        return self._loads(data)

    def _loads(self, data: bytes) -> Any:
        try:
            return json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"Invalid JSON: {e}") from e

    def _decode_typed(self, data: bytes, type_: Any) -> Any:
        name = getattr(type_, "__name__", type_)
        try:
            return TypeAdapter(type_).validate_json(data)
        except ValidationError as e:
            raise DecodeError(f"Body does not match {name}: {e}") from e
        except (PydanticUserError, TypeError) as e:
            raise DecodeError(f"Cannot decode into {name!r}: {e}") from e
