"""Shape predicates for scanned or typed product codes.

The classes overlap (a 6-digit code is both model- and SKU-shaped); callers
rank them with ``priority_score`` instead of treating them as exclusive.
"""

from __future__ import annotations

import re
from typing import Final

_EAN_RE: Final = re.compile(r"^(?:[0-9]{8}|[0-9]{12,14})$")
_MODEL_RE: Final = re.compile(r"^[0-9]{6,8}$")
_SKU_RE: Final = re.compile(r"^[A-Za-z0-9._-]{5,}$")

EAN_PRIORITY: Final[int] = 3
SKU_PRIORITY: Final[int] = 2
MODEL_PRIORITY: Final[int] = 1


def is_url(value: str | None) -> bool:
    return bool(value) and value.strip().lower().startswith(("http://", "https://"))


def is_ean(value: str | None) -> bool:
    return bool(value) and _EAN_RE.match(value.strip()) is not None


def is_model(value: str | None) -> bool:
    return bool(value) and _MODEL_RE.match(value.strip()) is not None


def is_sku(value: str | None) -> bool:
    return bool(value) and _SKU_RE.match(value.strip()) is not None


def priority_score(value: str | None) -> int:
    """EAN 3, SKU 2, model 1, anything else 0."""
    if is_ean(value):
        return EAN_PRIORITY
    if is_sku(value):
        return SKU_PRIORITY
    if is_model(value):
        return MODEL_PRIORITY
    return 0
