"""
Response models.

ApiResponse is the envelope a handler returns (or raises) to take control of
the status code and headers. ProxyResponse is the outbound API Gateway proxy
integration shape produced by the packager.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiResponse(Exception):
    """
    Immutable response envelope carrying (body, headers, code).

    Handlers may return an ApiResponse for a successful call or raise it to
    produce an error response with explicit headers and status code.

    Example:
        >>> return ApiResponse({'id': 1}, {'X-Version': '2'}, 201)
    """

    def __init__(self, body: Any = None, headers: Optional[Mapping] = None, code: Optional[int] = None):
        super().__init__(body, headers, code)
        self._body = body
        self._headers = MappingProxyType(dict(headers or {}))
        self._code = code

    @property
    def body(self) -> Any:
        return self._body

    @property
    def headers(self) -> Mapping:
        return self._headers

    @property
    def code(self) -> Optional[int]:
        return self._code

    def __repr__(self) -> str:
        return f'ApiResponse(body={self._body!r}, headers={dict(self._headers)!r}, code={self._code!r})'

    def __str__(self) -> str:
        return repr(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ApiResponse):
            return NotImplemented
        return (self._body, dict(self._headers), self._code) == (other._body, dict(other._headers), other._code)

    __hash__ = Exception.__hash__


class ProxyResponse(BaseModel):
    """API Gateway Lambda proxy integration response."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: Annotated[int, Field(
        alias='statusCode',
        description='HTTP status code',
        examples=[200, 500],
    )]

    headers: Annotated[Dict[str, Any], Field(
        default_factory=dict,
        description='Single-value response headers',
    )]

    body: Annotated[str, Field(
        default='',
        description='Serialized response body',
    )] = ''

    is_base64_encoded: Annotated[Optional[bool], Field(
        default=None,
        alias='isBase64Encoded',
        description='Set when the body carries base64 encoded binary content',
    )] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the dictionary returned from the Lambda function."""
        return self.model_dump(by_alias=True, exclude_none=True)
