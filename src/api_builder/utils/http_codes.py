"""HTTP status code helpers."""

import re
from typing import Any

_DIGITS = re.compile(r'^[0-9]+$')


def valid_http_code(value: Any) -> bool:
    """Check whether a value is an integer HTTP code (or digit string) in 200-599."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        code = value
    elif isinstance(value, str) and _DIGITS.match(value):
        code = int(value)
    else:
        return False
    return 200 <= code < 600


def is_redirect(code: int) -> bool:
    return 301 <= code <= 303
