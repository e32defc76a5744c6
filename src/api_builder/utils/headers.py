"""
Case-insensitive header helpers.

Gateway events preserve the header casing sent by the client, so every
internal header read goes through a lower-cased view while the original
mapping stays the only source for output.
"""

from collections.abc import Mapping
from typing import Any, Dict, Iterator, Optional


def lowercase_keys(value: Any) -> Dict[str, Any]:
    """Return a copy of a mapping with lower-cased keys; anything else yields {}."""
    if not isinstance(value, Mapping):
        return {}
    return {str(key).lower(): item for key, item in value.items()}


class HeaderMap(Mapping):
    """Read-only, case-insensitive view over a header mapping."""

    def __init__(self, headers: Optional[Mapping] = None):
        self._headers = dict(headers) if isinstance(headers, Mapping) else {}
        self._index = {str(key).lower(): key for key in self._headers}

    def __getitem__(self, key: str) -> Any:
        return self._headers[self._index[key.lower()]]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f'HeaderMap({self._headers!r})'


def merge_headers(*header_maps: Optional[Mapping]) -> Dict[str, Any]:
    """
    Merge header maps left to right.

    A later header replaces an earlier one that differs only in case, and the
    later casing is kept in the result.
    """
    merged: Dict[str, Any] = {}
    index: Dict[str, str] = {}
    for headers in header_maps:
        if not isinstance(headers, Mapping):
            continue
        for key, value in headers.items():
            existing = index.get(key.lower())
            if existing is not None:
                del merged[existing]
            merged[key] = value
            index[key.lower()] = key
    return merged
