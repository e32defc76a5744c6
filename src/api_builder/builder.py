"""
ApiBuilder - the registration and dispatch facade.

An ApiBuilder instance owns the route table, CORS policy, metadata registries
and post-deploy steps. Everything is registered once while the module that
defines the API is imported; afterwards the instance is only read from by
`proxy_router`, so concurrent invocations never share mutable request state.

Example:
    >>> api = ApiBuilder()
    >>> @api.get('/echo')
    ... def echo(request, context):
    ...     return request.query_string
    >>> def lambda_handler(event, context):
    ...     return api.resolve(event, context)
"""

import asyncio
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Union

from api_builder.exceptions import ConfigurationError
from api_builder.handlers.dispatcher import CompletionCallback, Dispatcher
from api_builder.logic.cors import CorsPolicy, OriginResolver
from api_builder.logic.post_deploy import PostDeployOrchestrator, Prompter
from api_builder.logic.route_table import RouteTable
from api_builder.models.env_vars import get_router_env_vars
from api_builder.utils.observability import logger

API_CONFIG_VERSION = 4

DEFAULT_BINARY_MEDIA_TYPES = [
    'image/webp',
    'image/*',
    'image/jpg',
    'image/jpeg',
    'image/gif',
    'image/png',
    'application/octet-stream',
    'application/pdf',
    'application/zip',
]


class ApiBuilder:
    """Route table, CORS policy and post-deploy steps for one Lambda-backed API."""

    def __init__(self, merge_vars: Optional[bool] = None, prompter: Optional[Prompter] = None):
        if merge_vars is None:
            merge_vars = get_router_env_vars().merge_vars_enabled
        self.routes = RouteTable()
        self.cors = CorsPolicy()
        self.post_deploy_steps = PostDeployOrchestrator(prompter=prompter)
        self.dispatcher = Dispatcher(self.routes, self.cors, merge_vars=merge_vars)
        self._authorizers: Dict[str, Dict[str, Any]] = {}
        self._custom_responses: Dict[str, Dict[str, Any]] = {}
        self._binary_media_types: Union[List[str], bool] = list(DEFAULT_BINARY_MEDIA_TYPES)

    # Route registration

    def _register(self, method: str, path: str, handler: Optional[Callable], options: Optional[Dict[str, Any]]):
        if handler is None:
            def decorator(fn: Callable) -> Callable:
                self.routes.register(method, path, fn, options)
                return fn
            return decorator
        self.routes.register(method, path, handler, options)
        return handler

    def get(self, path: str, handler: Optional[Callable] = None, options: Optional[Dict[str, Any]] = None):
        return self._register('GET', path, handler, options)

    def post(self, path: str, handler: Optional[Callable] = None, options: Optional[Dict[str, Any]] = None):
        return self._register('POST', path, handler, options)

    def put(self, path: str, handler: Optional[Callable] = None, options: Optional[Dict[str, Any]] = None):
        return self._register('PUT', path, handler, options)

    def delete(self, path: str, handler: Optional[Callable] = None, options: Optional[Dict[str, Any]] = None):
        return self._register('DELETE', path, handler, options)

    def head(self, path: str, handler: Optional[Callable] = None, options: Optional[Dict[str, Any]] = None):
        return self._register('HEAD', path, handler, options)

    def patch(self, path: str, handler: Optional[Callable] = None, options: Optional[Dict[str, Any]] = None):
        return self._register('PATCH', path, handler, options)

    def any(self, path: str, handler: Optional[Callable] = None, options: Optional[Dict[str, Any]] = None):
        return self._register('ANY', path, handler, options)

    # CORS

    def cors_origin(self, origin: Union[str, OriginResolver, bool, None]) -> None:
        self.cors.set_origin(origin)

    def cors_headers(self, headers: str) -> None:
        self.cors.set_allow_headers(headers)

    def cors_max_age(self, max_age: Union[int, float, str]) -> None:
        self.cors.set_max_age(max_age)

    # Metadata registries

    def register_authorizer(self, name: Any, config: Any = None) -> None:
        """
        Register authorizer metadata for deployment tooling.

        Raises:
            ConfigurationError: for blank names, empty configurations or duplicates
        """
        if not name or not isinstance(name, str):
            raise ConfigurationError('Authorizer must have a name')
        if not isinstance(config, Mapping) or not config:
            raise ConfigurationError(f'Authorizer {name} configuration is invalid')
        if name in self._authorizers:
            raise ConfigurationError(f'Authorizer {name} is already defined')
        self._authorizers[name] = dict(config)
        logger.debug("Registered authorizer", extra={"authorizer": name})

    def set_gateway_response(self, response_type: Any, config: Any) -> None:
        """
        Register a custom API Gateway response.

        Raises:
            ConfigurationError: for blank types, invalid configurations or duplicates
        """
        if not response_type or not isinstance(response_type, str):
            raise ConfigurationError('response type must be a string')
        if not isinstance(config, Mapping):
            raise ConfigurationError(f'gateway response {response_type} configuration is invalid')
        if response_type in self._custom_responses:
            raise ConfigurationError(f'Response type {response_type} is already defined')
        self._custom_responses[response_type] = dict(config)

    def set_binary_media_types(self, media_types: Union[List[str], bool]) -> None:
        if media_types is False:
            self._binary_media_types = False
            return
        if not isinstance(media_types, list) or not all(isinstance(item, str) for item in media_types):
            raise ConfigurationError('binary media types must be a list of strings or False')
        self._binary_media_types = list(media_types)

    def api_config(self) -> Dict[str, Any]:
        """Snapshot of the configuration consumed by deployment tooling."""
        result: Dict[str, Any] = {'version': API_CONFIG_VERSION, 'routes': self.routes.configurations()}
        result.update(self.cors.config())
        if self._authorizers:
            result['authorizers'] = {name: dict(config) for name, config in self._authorizers.items()}
        if self._binary_media_types:
            result['binaryMediaTypes'] = list(self._binary_media_types)
        if self._custom_responses:
            result['customResponses'] = {name: dict(config) for name, config in self._custom_responses.items()}
        return result

    # Dispatch hooks

    def intercept(self, interceptor: Optional[Callable]) -> None:
        """Set the hook called with (request, context) before routing."""
        self.dispatcher.interceptor = interceptor

    def unsupported_event(self, handler: Optional[Callable]) -> None:
        """Set the handler called with (event, context, callback) for non-gateway events."""
        self.dispatcher.unsupported_event_handler = handler

    async def proxy_router(self, event: Any, context: Any = None, callback: Optional[CompletionCallback] = None) -> Any:
        """Route an API Gateway proxy event; resolves after completion has fired."""
        return await self.dispatcher.dispatch(event, context, callback)

    async def router(self, event: Any, context: Any = None, callback: Optional[CompletionCallback] = None) -> Any:
        """Route an event using the older request shape rules."""
        return await self.dispatcher.dispatch(event, context, callback, legacy=True)

    def resolve(self, event: Any, context: Any = None) -> Any:
        """Synchronous entry point for a Lambda function handler."""
        return asyncio.run(self.proxy_router(event, context))

    # Post-deploy

    def add_post_deploy_step(self, name: str, fn: Callable) -> None:
        self.post_deploy_steps.register(name, fn)

    def add_post_deploy_config(self, stage_var_name: str, prompt: str, config_key: str) -> None:
        self.post_deploy_steps.register_stage_variable(stage_var_name, prompt, config_key)

    async def post_deploy(self, options: Any, deploy_ctx: Any, utils: Any = None) -> Any:
        return await self.post_deploy_steps.run(options, deploy_ctx, utils)
