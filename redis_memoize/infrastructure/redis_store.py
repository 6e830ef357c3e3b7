from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Union

import redis
import redis.asyncio
import redis.asyncio.cluster
import redis.cluster

logger = logging.getLogger(__name__)


class RedisStore:
    """Store adapter over a redis-py client.

    Works with ``redis.asyncio.Redis`` (awaited directly) and with the
    blocking ``redis.Redis`` (each call runs in a worker thread). Client
    errors are not retried or translated; the caller decides what a
    failed read or write means.
    """

    def __init__(self, client: Any):
        self._client = client
        self._is_async = isinstance(client, redis.asyncio.Redis) or inspect.iscoroutinefunction(
            getattr(client, "get", None)
        )

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> RedisStore:
        kwargs.setdefault("decode_responses", True)
        client = redis.asyncio.from_url(url, **kwargs)
        logger.debug("Created redis client for %s", _redact(url))
        return cls(client)

    @property
    def client(self) -> Any:
        return self._client

    async def _call(self, method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        if self._is_async:
            return await method(*args, **kwargs)

        return await asyncio.to_thread(method, *args, **kwargs)

    async def get(self, key: str) -> Optional[Union[str, bytes]]:
        # bytes replies go to the codec undecoded; bad UTF-8 is a DecodeError there
        return await self._call(self._client.get, key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        result = await self._call(self._client.set, key, value, ex=ttl_seconds)
        return bool(result)

    async def close(self) -> None:
        closer = getattr(self._client, "aclose", None) or self._client.close
        if self._is_async:
            result = closer()
            if inspect.isawaitable(result):
                await result
        else:
            await asyncio.to_thread(closer)
        logger.debug("Redis client closed")


def _redact(url: str) -> str:
    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest:
        return url
    return f"{scheme}://***@{rest.rsplit('@', 1)[1]}"


def is_redis_client(candidate: Any) -> bool:
    return isinstance(
        candidate,
        (
            redis.Redis,
            redis.asyncio.Redis,
            redis.cluster.RedisCluster,
            redis.asyncio.cluster.RedisCluster,
        ),
    )
