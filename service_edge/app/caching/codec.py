"""
Payload codecs for cached values.
"""

import json
from typing import Any, Generic, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from shared.errors import DecodeFailedError


ModelT = TypeVar("ModelT", bound=BaseModel)


class Codec:
    """Turns values into stored bytes and back."""

    def encode(self, value: Any) -> bytes:
        raise NotImplementedError

    def decode(self, payload: bytes) -> Any:
        """Decode ``payload``; raise DecodeFailedError when it is unreadable."""
        raise NotImplementedError


class JsonCodec(Codec):
    """UTF-8 JSON codec.

    Only JSON-native values are accepted; anything else raises TypeError so
    the gateway returns it uncached instead of storing a lossy copy.
    """

    def encode(self, value: Any) -> bytes:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    def decode(self, payload: bytes) -> Any:
        try:
            return json.loads(payload)
        except (UnicodeDecodeError, ValueError) as e:
            raise DecodeFailedError(details={"error": str(e)}) from e


class ModelCodec(Codec, Generic[ModelT]):
    """Codec for one pydantic model type.

    A payload written by an older model version that no longer validates is
    reported as a decode failure, which the gateway treats as a miss.
    """

    def __init__(self, model: Type[ModelT]):
        self.model = model

    def encode(self, value: ModelT) -> bytes:
        return value.model_dump_json().encode("utf-8")

    def decode(self, payload: bytes) -> ModelT:
        try:
            return self.model.model_validate_json(payload)
        except PydanticValidationError as e:
            raise DecodeFailedError(details={"model": self.model.__name__, "errors": e.error_count()}) from e
