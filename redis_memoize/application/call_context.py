from __future__ import annotations

from contextvars import ContextVar

cache_key_var: ContextVar[str] = ContextVar("cache_key", default="-")
