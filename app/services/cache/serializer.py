"""JSON encoding of cache payloads."""

import json
from typing import Any

from app.exceptions import CacheSerializationError


def serialize(key: str, value: Any) -> str:
    """
    Encode a value for storage under key.
    
    NaN and infinity are rejected since they do not survive a JSON round trip.
    
    Raises:
        CacheSerializationError: If the value is not JSON-serializable
    """
    try:
        return json.dumps(value, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise CacheSerializationError(key, str(e)) from e


def deserialize(key: str, raw: str) -> Any:
    """
    Decode a stored payload.
    
    Raises:
        CacheSerializationError: If the payload is not valid JSON
    """
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise CacheSerializationError(key, str(e)) from e
