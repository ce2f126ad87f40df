"""Payload codec for persisted values using orjson and pydantic."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, TypeVar

import orjson
from pydantic import BaseModel, TypeAdapter, ValidationError

from eco_sorter.errors import CorruptPayloadError

T = TypeVar("T")


def encode(value: BaseModel | Sequence[BaseModel]) -> bytes:
    """Serialize a model, or a list of models, to compact JSON bytes."""
    if isinstance(value, BaseModel):
        data: Any = value.model_dump(mode="json")
    else:
        data = [item.model_dump(mode="json") for item in value]
    return orjson.dumps(data)


def decode(payload: bytes, adapter: TypeAdapter[T], key: str) -> T:
    """Parse stored bytes into the adapter's type.

    Raises:
        CorruptPayloadError: The bytes are not JSON or do not match the schema.
    """
    try:
        return adapter.validate_python(orjson.loads(payload))
    except (orjson.JSONDecodeError, ValidationError) as e:
        raise CorruptPayloadError(f"Corrupt payload under key '{key}': {e}") from e
