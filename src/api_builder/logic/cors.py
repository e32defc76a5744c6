"""
CORS policy resolution.

The policy is configured once during setup and computes the cross-origin
header set for every response, including synthetic OPTIONS responses.
"""

from numbers import Number
from typing import Any, Callable, Dict, Iterable, Optional, Union

from api_builder.exceptions import ConfigurationError
from api_builder.handlers.invocation import call, unwrap
from api_builder.models.request import ApiRequest

DEFAULT_ALLOW_HEADERS = 'Content-Type,Authorization,X-Amz-Date,X-Api-Key,X-Amz-Security-Token'
DEFAULT_ORIGIN = '*'

OriginResolver = Callable[[ApiRequest], Any]


class CorsPolicy:
    """Cross-origin settings shared by every route."""

    def __init__(self):
        self._origin_resolver: Optional[OriginResolver] = None
        self._configured: Optional[bool] = None
        self._allow_headers: Optional[str] = None
        self._max_age: Optional[Union[int, float, str]] = None

    @property
    def disabled(self) -> bool:
        return self._configured is False

    def set_origin(self, origin: Union[str, OriginResolver, bool, None]) -> None:
        """
        Configure the allowed origin.

        A falsy value disables CORS entirely, a callable is invoked with the
        request, and any other value is used literally.
        """
        if not origin:
            self._origin_resolver = None
            self._configured = False
        elif callable(origin):
            self._origin_resolver = origin
            self._configured = True
        else:
            self._origin_resolver = lambda _request: origin
            self._configured = True

    def set_allow_headers(self, headers: Any) -> None:
        if not isinstance(headers, str):
            raise ConfigurationError('corsHeaders only accepts strings')
        self._allow_headers = headers

    def set_max_age(self, max_age: Any) -> None:
        if isinstance(max_age, bool):
            raise ConfigurationError('corsMaxAge only accepts numbers')
        if isinstance(max_age, Number):
            self._max_age = max_age
            return
        try:
            float(max_age)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError('corsMaxAge only accepts numbers') from exc
        self._max_age = max_age

    async def resolve_origin(self, request: Optional[ApiRequest]) -> Any:
        if self._configured is False:
            return None
        if self._origin_resolver is None:
            return DEFAULT_ORIGIN
        return unwrap(await call(self._origin_resolver, request))

    async def headers_for(self, request: Optional[ApiRequest], methods: Iterable[str]) -> Dict[str, str]:
        """
        Compute the CORS header map for a request.

        Raises whatever the origin resolver raises.
        """
        origin = await self.resolve_origin(request)
        if not origin:
            return {}
        allowed = sorted(set(methods) - {'OPTIONS'})
        return {
            'Access-Control-Allow-Origin': str(origin),
            'Access-Control-Allow-Headers': self._allow_headers or DEFAULT_ALLOW_HEADERS,
            'Access-Control-Allow-Methods': ','.join(allowed + ['OPTIONS']),
            'Access-Control-Allow-Credentials': 'true',
            'Access-Control-Max-Age': str(self._max_age) if self._max_age is not None else '0',
        }

    def config(self) -> Dict[str, Any]:
        """CORS entries for the API config snapshot."""
        result: Dict[str, Any] = {}
        if self._configured is not None:
            result['corsHandlers'] = self._configured
        if self._allow_headers:
            result['corsHeaders'] = self._allow_headers
        if self._max_age is not None:
            result['corsMaxAge'] = self._max_age
        return result
