"""
Dispatcher - drives a single invocation from gateway event to completion.

Each dispatch walks NORMALIZE -> INTERCEPT -> ROUTE -> INVOKE -> PACKAGE ->
COMPLETE. Any failure outside a route handler skips straight to COMPLETE
with an error, while handler failures are packaged through the route's
error template. The completion callback fires exactly once per dispatch.
"""

from typing import Any, Callable, Dict, Mapping, Optional

from api_builder.exceptions import RequestNormalizationError, RoutingError
from api_builder.handlers.invocation import Failure, call
from api_builder.logic.cors import CorsPolicy
from api_builder.logic.normalizer import convert_proxy_request, extend_proxy_request, is_proxy_event
from api_builder.logic.packager import ERROR, SUCCESS, log_error, package_response
from api_builder.logic.route_table import RouteTable
from api_builder.models.request import ApiRequest
from api_builder.models.response import ApiResponse
from api_builder.utils.observability import count_error, logger, tracer
from api_builder.utils.serialization import is_empty

CompletionCallback = Callable[[Optional[BaseException], Optional[Dict[str, Any]]], Any]

INVALID_REQUEST_RESPONSE = {
    'statusCode': 500,
    'headers': {'Content-Type': 'text/plain; charset=utf-8'},
    'body': 'The client request is invalid',
}


class Completion:
    """Fires the completion callback once and remembers the outcome."""

    def __init__(self, callback: Optional[CompletionCallback] = None):
        self._callback = callback
        self.fired = False
        self.error: Optional[BaseException] = None
        self.response: Optional[Dict[str, Any]] = None

    def done(self, error: Optional[BaseException] = None, response: Optional[Dict[str, Any]] = None) -> None:
        if self.fired:
            logger.warning("Ignoring repeated completion", extra={"error": str(error) if error else None})
            return
        self.fired = True
        self.error = error
        self.response = response
        if self._callback is not None:
            self._callback(error, response)

    def result(self) -> Optional[Dict[str, Any]]:
        """Return the response; without a callback the completion error is raised."""
        if self.error is not None and self._callback is None:
            raise self.error
        return self.response


class Dispatcher:
    """Routes gateway events through the registered handlers."""

    def __init__(
        self,
        route_table: RouteTable,
        cors: CorsPolicy,
        merge_vars: bool = False,
    ):
        self.route_table = route_table
        self.cors = cors
        self.merge_vars = merge_vars
        self.interceptor: Optional[Callable] = None
        self.unsupported_event_handler: Optional[Callable] = None

    def _normalize(self, event: Mapping, context: Any, legacy: bool) -> ApiRequest:
        if legacy:
            return extend_proxy_request(event, context)
        return convert_proxy_request(event, context, merge_env=self.merge_vars)

    async def _cors_headers(self, request: ApiRequest) -> Dict[str, str]:
        return await self.cors.headers_for(request, self.route_table.list_methods(request.path))

    async def _intercept(self, request: ApiRequest, context: Any) -> Any:
        if self.interceptor is None:
            return request
        settled = await call(self.interceptor, request, context)
        if isinstance(settled, Failure):
            logger.error("Interceptor failed", exc_info=settled.error, extra={"error": str(settled.error)})
            raise settled.error
        return settled.value

    async def _route(self, request: ApiRequest, context: Any) -> Dict[str, Any]:
        method, path = request.method, request.path
        if method == 'OPTIONS':
            return {'statusCode': 200, 'headers': await self._cors_headers(request), 'body': ''}

        entry = self.route_table.lookup(path, method)
        if entry is None:
            count_error("RouteNotFound")
            logger.warning("No handler for request", extra={"method": method, "path": path})
            raise RoutingError(f'no handler for {method} {path}', method=method, path=path)

        settled = await call(entry.handler, request, context)
        cors_headers = await self._cors_headers(request)
        if isinstance(settled, Failure):
            count_error("HandlerError")
            log_error(settled.error)
            return package_response(settled.error, entry.options.template(ERROR), cors_headers, ERROR)
        return package_response(settled.value, entry.options.template(SUCCESS), cors_headers, SUCCESS)

    async def _short_circuit(self, envelope: ApiResponse, request: ApiRequest) -> Dict[str, Any]:
        entry = self.route_table.lookup(request.path, request.method)
        template = entry.options.template(SUCCESS) if entry else None
        return package_response(envelope, template, await self._cors_headers(request), SUCCESS)

    @tracer.capture_method
    async def dispatch(
        self,
        event: Any,
        context: Any = None,
        callback: Optional[CompletionCallback] = None,
        legacy: bool = False,
    ) -> Any:
        """
        Process one gateway event.

        Args:
            event: API Gateway proxy event
            context: Lambda invocation context
            callback: optional completion callback called as callback(error, response)
            legacy: build the request with the older request shape rules

        Returns:
            The proxy response; the completion error is raised when no callback is given
        """
        if not is_proxy_event(event):
            if self.unsupported_event_handler is not None:
                logger.debug("Delegating unsupported event")
                settled = await call(self.unsupported_event_handler, event, context, callback)
                if isinstance(settled, Failure):
                    raise settled.error
                return settled.value
            completion = Completion(callback)
            completion.done(RoutingError('event does not contain routing information'))
            return completion.result()

        completion = Completion(callback)
        try:
            request = self._normalize(event, context, legacy)
        except RequestNormalizationError as exc:
            count_error("InvalidRequest")
            logger.warning("Rejecting invalid request", extra={"error": str(exc)})
            completion.done(None, dict(INVALID_REQUEST_RESPONSE, headers=dict(INVALID_REQUEST_RESPONSE['headers'])))
            return completion.result()

        # The callback runs outside the try so that its own errors reach the caller.
        try:
            intercepted = await self._intercept(request, context)
            if is_empty(intercepted):
                response = None
            elif isinstance(intercepted, ApiResponse):
                response = await self._short_circuit(intercepted, request)
            else:
                routed = intercepted if isinstance(intercepted, ApiRequest) else ApiRequest.model_validate(intercepted)
                response = await self._route(routed, context)
        except Exception as exc:
            completion.done(exc)
        else:
            completion.done(None, response)
        return completion.result()
