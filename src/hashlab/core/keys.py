"""Key normalisation and the FNV-1a hash used to place keys in a table."""

from __future__ import annotations

import re

FNV_OFFSET_BASIS: int = 0x811C9DC5
FNV_PRIME: int = 0x01000193
_U32_MASK: int = 0xFFFFFFFF

_INTEGER_LITERAL = re.compile(r"^-?[0-9]+$")


def normalize_key(raw: object) -> str:
    """Canonicalise ``raw`` into the string form stored in tables.

    Integer literals collapse to their decimal form (``"007"`` -> ``"7"``,
    ``"-0"`` -> ``"0"``); anything else is returned trimmed and otherwise
    untouched. Empty input yields an empty key.
    """

    if isinstance(raw, int) and not isinstance(raw, bool):
        return str(raw)
    text = str(raw).strip()
    if _INTEGER_LITERAL.match(text):
        negative = text.startswith("-")
        digits = text.lstrip("-").lstrip("0") or "0"
        return f"-{digits}" if negative and digits != "0" else digits
    return text


def fnv1a_32(key: str) -> int:
    h = FNV_OFFSET_BASIS
    for ch in key:
        h ^= ord(ch)
        h = (h * FNV_PRIME) & _U32_MASK
    return h


def primary_index(key: str, size: int) -> int:
    return fnv1a_32(key) % size


def secondary_step(key: str, size: int) -> int:
    """Double-hashing step, always within ``[1, size - 1]`` for ``size > 1``."""

    if size <= 1:
        return 1
    step = 1 + (fnv1a_32(key) % (size - 1))
    if step % size == 0:
        return 1
    return step


__all__ = [
    "FNV_OFFSET_BASIS",
    "FNV_PRIME",
    "normalize_key",
    "fnv1a_32",
    "primary_index",
    "secondary_step",
]
