from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Mapping, Optional

from redis_memoize.application.memoizer import MemoizedFunction
from redis_memoize.application.ports import StorePort
from redis_memoize.application.stats import Stats, StatsReporter, StatsSink
from redis_memoize.domain.errors import ConfigurationError
from redis_memoize.infrastructure.config import MemoizeSettings, build_settings
from redis_memoize.infrastructure.redis_store import RedisStore, is_redis_client

logger = logging.getLogger(__name__)

StoreTarget = Any


def resolve_store(target: StoreTarget) -> StorePort:
    if target is None:
        raise ConfigurationError("Either a store, a redis client or a redis URL must be set")

    if isinstance(target, str):
        if not target.strip():
            raise ConfigurationError("Redis URL cannot be empty")
        try:
            return RedisStore.from_url(target)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid redis URL: {exc}") from exc

    if is_redis_client(target):
        return RedisStore(target)

    if all(callable(getattr(target, name, None)) for name in ("get", "set", "close")):
        if inspect.iscoroutinefunction(target.get):
            return target
        return RedisStore(target)

    raise ConfigurationError(
        f"Unsupported store target of type {type(target).__name__}"
    )


def memoize(
    fn: Callable[..., Any],
    store: StoreTarget,
    settings: MemoizeSettings | Mapping[str, Any] | None = None,
    *,
    stats_sink: Optional[StatsSink] = None,
    clock: Optional[Callable[[], float]] = None,
    **overrides: Any,
) -> MemoizedFunction:
    """Wrap ``fn`` so repeated calls with the same arguments hit the store.

    ``store`` is a redis URL, a redis-py client (asyncio or blocking) or
    any object with async ``get``/``set``/``close``; a client whose
    methods block is wrapped so its calls run off the event loop. Settings
    are checked before the store target is touched, so a bad
    ``ttl_seconds`` fails without opening a connection.
    """
    if not callable(fn):
        raise ConfigurationError(f"Expected a callable, got {type(fn).__name__}")

    resolved = build_settings(settings, **overrides)
    adapter = resolve_store(store)

    stats = Stats()
    reporter = StatsReporter(
        stats,
        resolved.stats_interval_seconds,
        sink=stats_sink,
        clock=clock,
    )
    memoized_fn = MemoizedFunction(
        fn,
        adapter,
        key_prefix=resolved.key_prefix,
        ttl_seconds=resolved.ttl_seconds,
        reporter=reporter,
        stats=stats,
        fallback_on_read_error=resolved.fallback_on_read_error,
    )
    logger.info("Memoizing %r", memoized_fn)
    return memoized_fn


def memoized(
    store: StoreTarget,
    settings: MemoizeSettings | Mapping[str, Any] | None = None,
    **options: Any,
) -> Callable[[Callable[..., Any]], MemoizedFunction]:
    def decorator(fn: Callable[..., Any]) -> MemoizedFunction:
        return memoize(fn, store, settings, **options)

    return decorator
