"""
Body serialization helpers for the response packager.

Two modes are provided: a strict JSON encoder used for JSON success bodies,
which fails on self-referential structures, and a lenient stringifier used
for every other body, which replaces cycles with a placeholder.
"""

import base64
import json
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, FrozenSet

from pydantic import BaseModel

from api_builder.exceptions import CircularReferenceError

CIRCULAR_PLACEHOLDER = '[Circular]'
JSON_CONTENT_TYPE = 'application/json'


def canonical_content_type(content_type: Any) -> str:
    """Strip parameters such as charset from a content type header value."""
    if not content_type:
        return ''
    return str(content_type).split(';')[0].strip()


def is_empty(value: Any) -> bool:
    """Mirror the gateway notion of an empty body: None, False, '', b'' and zero."""
    if value is None or value is False:
        return True
    if isinstance(value, (str, bytes, bytearray)):
        return len(value) == 0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return False


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode='json')
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode('ascii')
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f'Object of type {type(value).__name__} is not JSON serializable')


def to_json(value: Any) -> str:
    """Serialize a value to compact JSON, failing on circular references."""
    try:
        return json.dumps(value, default=_json_default, separators=(',', ':'), ensure_ascii=False)
    except ValueError as exc:
        if 'Circular reference' in str(exc):
            raise CircularReferenceError('cannot serialize circular structure as JSON', value=value) from exc
        raise


def _decycle(value: Any, ancestors: FrozenSet[int]) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode='json')
    if isinstance(value, Mapping):
        if id(value) in ancestors:
            return CIRCULAR_PLACEHOLDER
        inner = ancestors | {id(value)}
        return {str(key): _decycle(item, inner) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        if id(value) in ancestors:
            return CIRCULAR_PLACEHOLDER
        inner = ancestors | {id(value)}
        return [_decycle(item, inner) for item in value]
    return value


def _lenient_default(value: Any) -> Any:
    try:
        return _json_default(value)
    except TypeError:
        return str(value)


def safe_json(value: Any) -> str:
    """
    Serialize a value to compact JSON without ever failing.

    Cycles become a placeholder and values with no JSON form are stringified.
    """
    return json.dumps(
        _decycle(value, frozenset()),
        default=_lenient_default,
        separators=(',', ':'),
        ensure_ascii=False,
    )


def safe_stringify(value: Any) -> str:
    """
    Turn any handler result into a response body string.

    Strings pass through, binary data is base64 encoded, structures are JSON
    encoded with cycle protection, other values are stringified and empty
    values become ''.
    """
    if is_empty(value):
        return ''
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode('ascii')
    if isinstance(value, bool):
        return 'true'
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (Mapping, list, tuple, set, frozenset, BaseModel)):
        return safe_json(value)
    return str(value)
