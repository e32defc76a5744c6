"""Stage variable merging."""

from collections.abc import Mapping
from typing import Any, Dict, Optional


def merge_vars(base: Optional[Mapping], replacement: Optional[Mapping], key_prefix: Optional[str]) -> Dict[str, Any]:
    """
    Copy `base` and overlay every `replacement` key starting with `key_prefix`.

    The prefix is stripped from overlaid keys. Neither argument is modified.

    Example:
        >>> merge_vars({'a': 1}, {'v1_b': 'b1', 'v2_b': 'b2'}, 'v2_')
        {'a': 1, 'b': 'b2'}
    """
    merged: Dict[str, Any] = dict(base or {})
    if replacement and key_prefix:
        for key, value in replacement.items():
            if key.startswith(key_prefix):
                merged[key[len(key_prefix):]] = value
    return merged
