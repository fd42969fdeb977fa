"""In-process TTL cache for repository reads.

Built on cachetools.TTLCache. Each process keeps its own instances; nothing
is shared or persisted.

Reads that fail against the database can fall back to the last value that
was successfully loaded (even if its TTL has expired), so a brief outage
degrades the comparison view to slightly old data instead of errors.
"""

import asyncio
import functools
import logging
from collections import OrderedDict
from collections.abc import Callable
from typing import Any, TypeVar

from cachetools import TTLCache  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

# Distinguishes "not cached" from a cached None (e.g. unknown stream id)
_MISSING = object()

F = TypeVar("F", bound=Callable[..., Any])


class AsyncTTLCache:
    """TTL cache plus a bounded last-known-good store.

    ``get``/``set`` operate on the fresh tier; ``get_stale`` reads values that
    outlived their TTL and is only meant for failure fallback.
    """

    def __init__(self, maxsize: int = 128, ttl: float = 60.0):
        self._maxsize = maxsize
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._stale: OrderedDict[str, Any] = OrderedDict()
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
            if len(self._locks) > self._maxsize * 2:
                live = set(self._stale) | set(self._cache)
                for k in [k for k in self._locks if k not in live and k != key]:
                    del self._locks[k]
        return lock

    def get(self, key: str) -> Any:
        """Return the fresh value or ``_MISSING``."""
        return self._cache.get(key, _MISSING)

    def set(self, key: str, value: Any) -> None:
        self._cache[key] = value
        self._stale[key] = value
        self._stale.move_to_end(key)
        while len(self._stale) > self._maxsize:
            self._stale.popitem(last=False)

    def invalidate(self, key: str) -> None:
        """Drop the fresh value; the stale copy stays for fallback."""
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()

    def get_stale(self, key: str) -> Any:
        """Return the last-known-good value or ``_MISSING``."""
        value = self._stale.get(key, _MISSING)
        if value is not _MISSING:
            self._stale.move_to_end(key)
        return value

    @property
    def size(self) -> int:
        return len(self._cache)

    @property
    def stale_size(self) -> int:
        return len(self._stale)


async def _load_with_retry(
    func: Callable[..., Any],
    args: tuple,
    kwargs: dict,
    key: str,
    retry: int,
    retry_delay: float,
) -> Any:
    """Run ``func`` up to ``retry`` times; re-raise the last failure."""
    for attempt in range(1, retry + 1):
        try:
            return await func(*args, **kwargs)
        except (asyncio.CancelledError, LookupError):
            # Missing rows are an answer, not an outage
            raise
        except Exception as exc:
            if attempt == retry:
                raise
            delay = retry_delay * attempt
            logger.warning(
                "Query attempt %d/%d failed for %s: %s, retrying in %.1fs",
                attempt,
                retry,
                key,
                type(exc).__name__,
                delay,
            )
            await asyncio.sleep(delay)
    raise ValueError("retry must be at least 1")


def cached(
    cache: AsyncTTLCache,
    key_func: Callable[..., str],
    *,
    retry: int = 3,
    retry_delay: float = 1.0,
    stale_fallback: bool = True,
):
    """Cache the result of an async repository method.

    ``key_func`` receives the same arguments as the wrapped method. On a miss
    the method runs under a per-key lock, so concurrent callers share one
    query. A failing query is attempted up to ``retry`` times (linear
    backoff). When every attempt fails and ``stale_fallback`` is set, the
    last-known-good value is served if there is one; otherwise the failure
    propagates.

    Timeline reads pass ``retry=1, stale_fallback=False``: a comparison
    refresh must see an outage as a failed fetch, not as old data.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            key = key_func(*args, **kwargs)

            result = cache.get(key)
            if result is not _MISSING:
                return result

            async with cache.lock_for(key):
                result = cache.get(key)
                if result is not _MISSING:
                    return result

                try:
                    result = await _load_with_retry(
                        func, args, kwargs, key, retry, retry_delay
                    )
                except (asyncio.CancelledError, LookupError):
                    raise
                except Exception as exc:
                    stale = cache.get_stale(key) if stale_fallback else _MISSING
                    if stale is _MISSING:
                        raise
                    logger.warning("Serving stale data for %s (%s)", key, type(exc).__name__)
                    return stale

                cache.set(key, result)
                return result

        wrapper.cache = cache  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator
