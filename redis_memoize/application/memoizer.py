from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Callable, Optional

from redis_memoize.domain.codec import decode_value, encode_value
from redis_memoize.domain.errors import StoreReadError, StoreWriteError
from redis_memoize.domain.keys import derive_cache_key

from .call_context import cache_key_var
from .ports import StorePort
from .stats import Stats, StatsReporter

logger = logging.getLogger(__name__)


class MemoizedFunction:
    """Cache-through wrapper around one function and one store.

    Calls look up ``key_prefix + fingerprint`` in the store. A hit returns
    the decoded value without calling the function; a miss calls it and
    writes the encoded result with ``ttl_seconds`` expiry.

    Nothing serializes concurrent misses on the same key: both compute and
    both write, and the later write wins.
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        store: StorePort,
        *,
        key_prefix: str,
        ttl_seconds: int,
        reporter: Optional[StatsReporter] = None,
        stats: Optional[Stats] = None,
        fallback_on_read_error: bool = False,
    ):
        functools.update_wrapper(self, fn)
        self._fn = fn
        self._store = store
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds
        self.fallback_on_read_error = fallback_on_read_error
        self.stats = stats or Stats()
        self._reporter = reporter or StatsReporter(self.stats, None)
        self._name = getattr(fn, "__qualname__", repr(fn))

    @property
    def store(self) -> StorePort:
        return self._store

    def store_key(self, *args: Any, **kwargs: Any) -> str:
        return f"{self.key_prefix}{derive_cache_key(args, kwargs)}"

    async def _compute(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        result = self._fn(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        inner_key = derive_cache_key(args, kwargs)
        store_key = f"{self.key_prefix}{inner_key}"
        token = cache_key_var.set(inner_key)
        try:
            try:
                cached = await self._store.get(store_key)
            except Exception as exc:
                self.stats.record_read_error()
                error = StoreReadError(f"Cache lookup failed: {exc}", store_key)
                if not self.fallback_on_read_error:
                    raise error from exc
                logger.warning("%s; calling %s without cache", error, self._name)
                lookup_failed = True
            else:
                lookup_failed = False

            if lookup_failed:
                return await self._compute(args, kwargs)

            if cached is not None:
                value = decode_value(cached)
                logger.debug("Cache HIT for %s. %d bytes", inner_key, len(cached))
                self.stats.record_hit()
                self._reporter.tick()
                return value

            logger.debug("Cache MISS for %s", inner_key)
            self.stats.record_miss()
            self._reporter.tick()

            result = await self._compute(args, kwargs)
            await self._write(store_key, result)
            return result
        finally:
            cache_key_var.reset(token)

    async def _write(self, store_key: str, result: Any) -> None:
        try:
            await self._store.set(store_key, encode_value(result), self.ttl_seconds)
        except Exception as exc:
            self.stats.record_write_error()
            error = StoreWriteError(f"Cache write failed: {exc}", store_key)
            logger.warning("%s", error, exc_info=exc)

    async def close(self) -> None:
        await self._store.close()
        logger.info("Memoized %s closed (%r)", self._name, self.stats)

    async def __aenter__(self) -> MemoizedFunction:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<MemoizedFunction {self._name} prefix={self.key_prefix!r} ttl={self.ttl_seconds}>"
