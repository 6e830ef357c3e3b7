from __future__ import annotations

from typing import Optional, Protocol, Union


class StorePort(Protocol):
    async def get(self, key: str) -> Optional[Union[str, bytes]]: ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool: ...

    async def close(self) -> None: ...
