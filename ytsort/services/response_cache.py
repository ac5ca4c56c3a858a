from __future__ import annotations

import functools
import inspect
import json
import logging
from collections.abc import Callable
from typing import Any, cast

from ytsort.repositories.response_cache_repository import KeyValueStore

LOGGER = logging.getLogger("ytsort.cache")

Encoder = Callable[[Any], Any]
Decoder = Callable[[Any], Any]


def cache_key_for(fn: Callable[..., Any], args: tuple[Any, ...]) -> str:
    # Keyed by bare function name: two wrapped functions sharing a name share entries.
    serialized_args = json.dumps(list(args), separators=(",", ":"), ensure_ascii=False)
    return f"{fn.__name__}({serialized_args})"


def cached(
    store: KeyValueStore,
    fn: Callable[..., Any],
    *,
    encode: Encoder | None = None,
    decode: Decoder | None = None,
) -> Callable[..., Any]:
    """Memoize `fn` in `store`, keyed by its name and JSON-serialized arguments.

    Works for plain and `async` functions. Unreadable entries count as misses,
    `None` results are never stored, and failing to store a result does not
    affect what the call returns. Entries are never evicted.

    `encode` turns a result into a JSON-serializable value before storing;
    `decode` reverses it after reading.
    """

    def _lookup(key: str) -> tuple[bool, Any]:
        try:
            raw_value = store.get_item(key)
            if not isinstance(raw_value, str):
                return False, None
            parsed = cast(object, json.loads(raw_value))
            value = decode(parsed) if decode is not None else parsed
        except Exception as exc:
            LOGGER.debug("cache lookup failed key=%s error=%s", key, exc)
            return False, None
        if value is None:
            return False, None
        return True, value

    def _store(key: str, value: Any) -> None:
        if value is None:
            return
        try:
            encoded = encode(value) if encode is not None else value
            store.set_item(key, json.dumps(encoded, separators=(",", ":"), ensure_ascii=False))
        except Exception as exc:
            LOGGER.debug("cache store failed key=%s error=%s", key, exc)

    if inspect.iscoroutinefunction(fn):

        @functools.wraps(fn)
        async def _async_wrapper(*args: Any) -> Any:
            key = cache_key_for(fn, args)
            hit, value = _lookup(key)
            if hit:
                LOGGER.debug("cache hit key=%s", key)
                return value
            result = await fn(*args)
            _store(key, result)
            return result

        return _async_wrapper

    @functools.wraps(fn)
    def _wrapper(*args: Any) -> Any:
        key = cache_key_for(fn, args)
        hit, value = _lookup(key)
        if hit:
            LOGGER.debug("cache hit key=%s", key)
            return value
        result = fn(*args)
        _store(key, result)
        return result

    return _wrapper
