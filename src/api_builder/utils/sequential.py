"""Sequential execution of asynchronous steps."""

import inspect
from typing import Any, Awaitable, Callable, List, Union


async def sequential_map(items: List[Any], generator: Callable[[Any, int], Union[Awaitable[Any], Any]]) -> List[Any]:
    """
    Call `generator(item, index)` for each item, one at a time.

    Each result is awaited before the next item starts. The first failure
    propagates and the remaining items are never processed.
    """
    if not isinstance(items, list):
        raise TypeError('the first argument must be a list')
    if not callable(generator):
        raise TypeError('the second argument must be a function')

    results: List[Any] = []
    for index, item in enumerate(list(items)):
        result = generator(item, index)
        if inspect.isawaitable(result):
            result = await result
        results.append(result)
    return results
