from __future__ import annotations

from typing import Optional


class MemoizeError(Exception):
    """Base class for every error raised by the memoization layer."""


class ConfigurationError(MemoizeError, ValueError):
    pass


class CacheKeyError(MemoizeError, TypeError):
    pass


class EncodeError(MemoizeError, TypeError):
    pass


class DecodeError(MemoizeError, ValueError):
    def __init__(self, message: str, position: Optional[int] = None):
        if position is not None:
            message = f"{message} (at char {position})"
        super().__init__(message)
        self.position = position


class StoreError(MemoizeError):
    def __init__(self, message: str, key: str):
        super().__init__(f"{message} key={key!r}")
        self.key = key


class StoreReadError(StoreError):
    pass


class StoreWriteError(StoreError):
    pass
