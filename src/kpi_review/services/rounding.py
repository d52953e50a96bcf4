from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any


def _to_float(value: Any) -> float | None:
    if value in (None, "") or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_rating_scale(values: Iterable[Any] | None) -> tuple[float, ...]:
    """
    Build an ascending, de-duplicated rating scale.

    Accepts raw numbers, numeric strings (DECIMAL columns arrive as "1.50")
    or rating option rows with ``rating_value`` / ``is_active`` keys.
    """
    if not values:
        return ()
    scale: set[float] = set()
    for value in values:
        if isinstance(value, dict):
            if not value.get("is_active", True):
                continue
            value = value.get("rating_value")
        number = _to_float(value)
        if number is not None:
            scale.add(number)
    return tuple(sorted(scale))


def round_to_scale(value: Any, rating_scale: Iterable[Any] | None) -> float:
    """Snap a computed rating to the nearest allowed option (lower option wins ties)."""
    number = _to_float(value)
    options = parse_rating_scale(rating_scale)
    if number is None or not options:
        return 0.0

    nearest = options[0]
    min_diff = abs(number - nearest)
    for option in options:
        diff = abs(number - option)
        if diff < min_diff:
            min_diff = diff
            nearest = option
    return nearest
