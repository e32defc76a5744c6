"""
Route table: maps (path, method) to a handler and its configuration.

Routing keys use the leading-slash form of a path, while configuration is
stored under the bare form, which is what deployment tooling consumes.
Registering the same (path, method) twice silently replaces the first entry.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from api_builder.exceptions import ConfigurationError
from api_builder.models.route_config import RouteOptions
from api_builder.utils.observability import logger

SUPPORTED_METHODS = ('GET', 'POST', 'PUT', 'DELETE', 'HEAD', 'PATCH')
ANY_METHOD = 'ANY'
REGISTRABLE_METHODS = SUPPORTED_METHODS + (ANY_METHOD,)


def routing_path(path: str) -> str:
    return path if path.startswith('/') else '/' + path


def config_path(path: str) -> str:
    return path[1:] if path.startswith('/') else path


@dataclass
class RouteEntry:
    """A registered route."""

    path: str
    method: str
    handler: Callable
    options: RouteOptions = field(default_factory=RouteOptions)


class RouteTable:
    """Registry of route handlers and their static configuration."""

    def __init__(self):
        self._routes: Dict[str, Dict[str, RouteEntry]] = {}
        self._configurations: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def register(self, method: str, path: str, handler: Callable, options: Optional[Dict[str, Any]] = None) -> RouteEntry:
        """
        Register a handler for a path and method.

        Raises:
            ConfigurationError: for unsupported methods, non-callable handlers or invalid options
        """
        method = method.upper()
        if method not in REGISTRABLE_METHODS:
            raise ConfigurationError(f'unsupported method {method}')
        if not isinstance(path, str):
            raise ConfigurationError('route path must be a string')
        if not callable(handler):
            raise ConfigurationError(f'handler for {method} {path} must be callable')

        raw_options = dict(options or {})
        try:
            parsed = RouteOptions.model_validate(raw_options)
        except (ValidationError, ValueError) as exc:
            raise ConfigurationError(f'invalid options for {method} {path}: {exc}') from exc

        entry = RouteEntry(path=routing_path(path), method=method, handler=handler, options=parsed)
        self._routes.setdefault(entry.path, {})[method] = entry
        self._configurations.setdefault(config_path(path), {})[method] = raw_options

        logger.debug("Registered route", extra={"method": method, "path": entry.path})
        return entry

    def lookup(self, path: Optional[str], method: str) -> Optional[RouteEntry]:
        """Return the exact-method entry, falling back to an ANY entry."""
        if not path:
            return None
        methods = self._routes.get(routing_path(path))
        if not methods:
            return None
        return methods.get(method.upper()) or methods.get(ANY_METHOD)

    def list_methods(self, path: Optional[str]) -> List[str]:
        """
        List the methods configured at a path.

        ANY expands to every supported method; an unknown path yields the
        full supported set.
        """
        methods = self._routes.get(routing_path(path)) if path else None
        if not methods or ANY_METHOD in methods:
            return list(SUPPORTED_METHODS)
        return list(methods)

    def configurations(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """Snapshot of the per-route options keyed by bare path and method."""
        return {
            path: {method: dict(options) for method, options in methods.items()}
            for path, methods in self._configurations.items()
        }
