"""
Value codec for cached results.

The stored text is JSON extended with four bare literals: ``undefined``
(for ``ABSENT``), ``NaN``, ``Infinity`` and ``-Infinity``. Plain JSON has no
way to tell "no value" from ``null``; the extra literal keeps them apart.

Decoding is a small recursive-descent parser over exactly that grammar.
It never evaluates the text, so a value written into the store by someone
else can at worst fail to decode.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from json.decoder import scanstring
from json.scanner import NUMBER_RE
from typing import Any

from .errors import DecodeError, EncodeError
from .sentinels import ABSENT

WHITESPACE = re.compile(r"[ \t\n\r]*")

_LITERALS = (
    ("null", None),
    ("true", True),
    ("false", False),
    ("undefined", ABSENT),
    ("NaN", math.nan),
    ("Infinity", math.inf),
    ("-Infinity", -math.inf),
)


def _encode_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return float.__repr__(value)


def _encode(value: Any, parts: list[str], seen: set[int]) -> None:
    if value is ABSENT:
        parts.append("undefined")
    elif value is None:
        parts.append("null")
    elif value is True:
        parts.append("true")
    elif value is False:
        parts.append("false")
    elif isinstance(value, str):
        parts.append(json.dumps(value, ensure_ascii=False))
    elif isinstance(value, int):
        parts.append(int.__repr__(value))
    elif isinstance(value, float):
        parts.append(_encode_float(value))
    elif isinstance(value, (Mapping, list, tuple)):
        marker = id(value)
        if marker in seen:
            raise EncodeError("Circular reference detected")
        seen.add(marker)

        if isinstance(value, Mapping):
            parts.append("{")
            for index, (key, item) in enumerate(value.items()):
                if not isinstance(key, str):
                    raise EncodeError(
                        f"Mapping keys must be strings, got {type(key).__name__}"
                    )
                if index:
                    parts.append(",")
                parts.append(json.dumps(key, ensure_ascii=False))
                parts.append(":")
                _encode(item, parts, seen)
            parts.append("}")
        else:
            parts.append("[")
            for index, item in enumerate(value):
                if index:
                    parts.append(",")
                _encode(item, parts, seen)
            parts.append("]")

        seen.discard(marker)
    else:
        raise EncodeError(f"Cannot encode value of type {type(value).__name__}")


def encode_value(value: Any) -> str:
    parts: list[str] = []
    _encode(value, parts, set())
    return "".join(parts)


class _Parser:
    def __init__(self, text: str):
        self.text = text

    def skip(self, idx: int) -> int:
        return WHITESPACE.match(self.text, idx).end()

    def value(self, idx: int) -> tuple[Any, int]:
        text = self.text
        idx = self.skip(idx)
        if idx >= len(text):
            raise DecodeError("Unexpected end of input", idx)

        char = text[idx]
        if char == '"':
            return self.string(idx)
        if char == "{":
            return self.object(idx + 1)
        if char == "[":
            return self.array(idx + 1)

        for literal, result in _LITERALS:
            if text.startswith(literal, idx):
                return result, idx + len(literal)

        match = NUMBER_RE.match(text, idx)
        if match is None:
            raise DecodeError("Unexpected token", idx)
        integer, fraction, exponent = match.groups()
        if fraction or exponent:
            number: Any = float(integer + (fraction or "") + (exponent or ""))
        else:
            number = int(integer)
        return number, match.end()

    def string(self, idx: int) -> tuple[str, int]:
        try:
            return scanstring(self.text, idx + 1, True)
        except json.JSONDecodeError as exc:
            raise DecodeError(exc.msg, exc.pos) from exc

    def array(self, idx: int) -> tuple[list[Any], int]:
        items: list[Any] = []
        idx = self.skip(idx)
        if self.text.startswith("]", idx):
            return items, idx + 1

        while True:
            item, idx = self.value(idx)
            items.append(item)
            idx = self.skip(idx)
            if self.text.startswith(",", idx):
                idx += 1
            elif self.text.startswith("]", idx):
                return items, idx + 1
            else:
                raise DecodeError("Expected ',' or ']'", idx)

    def object(self, idx: int) -> tuple[dict[str, Any], int]:
        result: dict[str, Any] = {}
        idx = self.skip(idx)
        if self.text.startswith("}", idx):
            return result, idx + 1

        while True:
            idx = self.skip(idx)
            if not self.text.startswith('"', idx):
                raise DecodeError("Expected string key", idx)
            key, idx = self.string(idx)
            idx = self.skip(idx)
            if not self.text.startswith(":", idx):
                raise DecodeError("Expected ':'", idx)
            result[key], idx = self.value(idx + 1)
            idx = self.skip(idx)
            if self.text.startswith(",", idx):
                idx += 1
            elif self.text.startswith("}", idx):
                return result, idx + 1
            else:
                raise DecodeError("Expected ',' or '}'", idx)


def decode_value(text: str) -> Any:
    if isinstance(text, (bytes, bytearray)):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError("Stored value is not valid UTF-8") from exc
    if not isinstance(text, str):
        raise DecodeError(f"Cannot decode value of type {type(text).__name__}")

    parser = _Parser(text)
    try:
        value, end = parser.value(0)
    except RecursionError as exc:
        raise DecodeError("Stored value is nested too deeply") from exc

    end = parser.skip(end)
    if end != len(text):
        raise DecodeError("Extra data", end)
    return value
