"""
Adapter between user callables and the dispatcher.

Interceptors, route handlers, CORS origin resolvers and post-deploy steps may
return a plain value, return an awaitable, or raise. `invoke` turns each of
those into an explicit outcome, and `settle` waits for pending ones.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union


@dataclass(frozen=True)
class Sync:
    """A value that is already available."""
    value: Any


@dataclass(frozen=True)
class Pending:
    """An awaitable that has not resolved yet."""
    awaitable: Awaitable[Any]


@dataclass(frozen=True)
class Failure:
    """A raised or rejected error."""
    error: BaseException


Outcome = Union[Sync, Pending, Failure]
Settled = Union[Sync, Failure]


def invoke(fn: Callable[..., Any], *args: Any) -> Outcome:
    try:
        value = fn(*args)
    except Exception as exc:
        return Failure(exc)
    if inspect.isawaitable(value):
        return Pending(value)
    return Sync(value)


async def settle(outcome: Outcome) -> Settled:
    if isinstance(outcome, Pending):
        try:
            return Sync(await outcome.awaitable)
        except Exception as exc:
            return Failure(exc)
    return outcome


async def call(fn: Callable[..., Any], *args: Any) -> Settled:
    """Invoke a callable and wait for its outcome."""
    return await settle(invoke(fn, *args))


def unwrap(settled: Settled) -> Any:
    """Return the settled value, or raise the settled error."""
    if isinstance(settled, Failure):
        raise settled.error
    return settled.value
