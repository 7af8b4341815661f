from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Optional, TypeVar

from .errors import INVALID_CHOICE, PreconditionViolation

T = TypeVar("T")


def clamp_int(x: int, lo: int, hi: int) -> int:
    v = int(x)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return v


def floor_int(x: float) -> int:
    """Floor toward -inf (matches int division semantics on negatives)."""
    return int(math.floor(float(x)))


def require_choice(value: Any, options: Mapping[str, T], *, field: str) -> str:
    """Normalize a choice key and ensure it exists in `options`."""
    key = str(value or "").strip().lower()
    if key not in options:
        raise PreconditionViolation(
            INVALID_CHOICE,
            f"Unknown {field}: {value!r}",
            {"field": field, "allowed": sorted(options.keys())},
        )
    return key


def first_or_none(items: Iterable[T]) -> Optional[T]:
    for item in items:
        return item
    return None
