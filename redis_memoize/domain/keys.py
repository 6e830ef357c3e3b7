"""
Cache key derivation.

A key is the SHA-1 hex digest of the call's argument tokens, concatenated
in order without a separator. Each positional argument contributes its
compact JSON text; ``ABSENT`` contributes a reserved token. Reserved tokens
start with ``<`` so they can never be produced by a JSON encoder.

Only a top-level ``ABSENT`` argument gets the reserved token. Nested inside
a list or a mapping (``[ABSENT]``, ``{"a": ABSENT}``) it is not JSON and
raises ``CacheKeyError``, as does ``ABSENT`` passed by keyword, even though
the value codec accepts nested ``ABSENT`` in results.

Equality is syntactic: ``1`` and ``"1"`` give different keys, and so do
``f(1, b=2)`` and ``f(1, 2)``. The digest is a fingerprint, not a
commitment; do not rely on it where an adversary can choose arguments to
force a collision.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Iterable, Mapping, Optional

from .errors import CacheKeyError
from .sentinels import ABSENT

ABSENT_TOKEN = "<absent>"
KWARGS_TOKEN = "<kwargs>"


def _to_json(value: Any) -> str:
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise CacheKeyError(
            f"Cannot derive cache key from argument of type {type(value).__name__}: {exc}"
        ) from exc


def argument_tokens(
    args: Iterable[Any], kwargs: Optional[Mapping[str, Any]] = None
) -> list[str]:
    tokens = [ABSENT_TOKEN if arg is ABSENT else _to_json(arg) for arg in args]

    if kwargs:
        if any(value is ABSENT for value in kwargs.values()):
            raise CacheKeyError("ABSENT cannot be passed as a keyword argument")
        tokens.append(KWARGS_TOKEN)
        tokens.append(_to_json(dict(kwargs)))

    return tokens


def derive_cache_key(
    args: Iterable[Any], kwargs: Optional[Mapping[str, Any]] = None
) -> str:
    digest = hashlib.sha1()
    for token in argument_tokens(args, kwargs):
        digest.update(token.encode("utf-8"))
    return digest.hexdigest()
