from __future__ import annotations

import math
import re
from typing import Any

_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")


def _parse_number(text: str) -> float | None:
    """Plain decimals only; exponents and digit separators such as "1_0" are not weights."""
    if not _NUMBER_RE.match(text):
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def resolve_weight(raw: Any) -> float:
    """
    Normalize a goal weight to a fraction in 0..1.

    "40%" and 40 are percentages, 0.4 is already a fraction. A bare number
    above 1 is always read as a percentage, so "50" means 50%.

    >>> resolve_weight("40%")
    0.4
    >>> resolve_weight(40)
    0.4
    >>> resolve_weight("abc")
    0.0
    """
    if raw is None or isinstance(raw, bool):
        return 0.0
    text = str(raw).strip()
    if not text:
        return 0.0

    if isinstance(raw, (int, float)):
        if not math.isfinite(raw):
            return 0.0
        weight = raw / 100 if raw > 1 else float(raw)
    elif text.endswith("%"):
        number = _parse_number(text[:-1].strip())
        if number is None:
            return 0.0
        weight = number / 100
    else:
        number = _parse_number(text)
        if number is None:
            return 0.0
        weight = number / 100 if number > 1 else number

    return max(0.0, min(1.0, weight))


def format_weight(weight: float) -> str:
    return f"{weight * 100:.0f}%"
