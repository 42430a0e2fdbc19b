"""
Sequential Async Iteration

Primitives that drive one logical operation over a collection, or around a
condition, strictly one step at a time:

- async_for: visit every key/value of a sequence, mapping or count in order
- async_while: run a body until a predicate fails or the body says stop

Each step may complete synchronously (plain return value) or asynchronously
(any awaitable). The first failure aborts the whole loop. Control is handed
back to the event loop before every step, so loops over huge collections
never grow the call stack and never starve other tasks.
"""

import asyncio
import inspect
import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any, Awaitable, Callable, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

Collection = Union[Sequence, Mapping, int]
ItemCallback = Callable[[Any, Any], Union[Awaitable[Any], Any]]

_INTEGER_KEY = re.compile(r"-?\d+")


async def _settle(result: Any) -> Any:
    """Normalize a sync-or-async step result into its final value."""
    if inspect.isawaitable(result):
        return await result
    return result


def _coerce_key(key: Any) -> Any:
    """Turn canonical base-10 integer strings into ints, leave anything else."""
    if isinstance(key, str) and _INTEGER_KEY.fullmatch(key) and str(int(key)) == key:
        return int(key)
    return key


def _snapshot(collection: Collection) -> List[Tuple[Any, Any]]:
    """Enumerate the (key, value) pairs of a collection once, at call time."""
    if isinstance(collection, bool):
        raise TypeError("async_for() expects a sequence, mapping or count, not bool")
    if isinstance(collection, int):
        if collection < 0:
            raise ValueError(f"async_for() count must be non-negative, got {collection}")
        return [(index, None) for index in range(collection)]
    if isinstance(collection, Mapping):
        return [(_coerce_key(key), value) for key, value in list(collection.items())]
    if isinstance(collection, Sequence):
        return list(enumerate(collection))
    raise TypeError(
        f"async_for() expects a sequence, mapping or count, not {type(collection).__name__}"
    )


async def async_for(collection: Collection, on_item: ItemCallback) -> None:
    """
    Process every item of ``collection`` strictly in order.

    Args:
        collection: A sequence (keys are indexes), a mapping (keys in
            insertion order, integer-like string keys passed as ints) or a
            non-negative int ``n`` standing for ``n`` ``None`` placeholders.
        on_item: Called as ``on_item(key, value)``. May return an awaitable,
            which is awaited before the next item starts, or a plain value.

    Raises:
        Whatever ``on_item`` raises, synchronously or from its awaitable.
        Items after the failing one are never visited.
    """
    items = _snapshot(collection)
    for key, value in items:
        await asyncio.sleep(0)
        await _settle(on_item(key, value))


async def async_while(
    predicate: Callable[[], Any],
    body: Callable[[], Union[Awaitable[Any], Any]],
) -> None:
    """
    Run ``body`` for as long as ``predicate()`` is truthy.

    The loop also stops as soon as ``body`` produces a truthy result. The
    predicate is evaluated synchronously; the body may be sync or async.
    """
    while predicate():
        if await _settle(body()):
            return
        await asyncio.sleep(0)


async def sleep(ms: float) -> None:
    """Resolve after ``ms`` milliseconds."""
    await asyncio.sleep(ms / 1000)


def first_defined(*values: Any) -> Optional[Any]:
    """Return the first argument that is not None."""
    return next((value for value in values if value is not None), None)
