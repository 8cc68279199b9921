from __future__ import annotations

import math


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def to_number(raw: object, default: float) -> float:
    """Coerce loose numeric input, falling back to ``default`` for junk or non-finite values."""
    if isinstance(raw, bool):
        return default
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value):
        return default
    return value


def clamped_number(raw: object, default: float, low: float, high: float) -> float:
    return clamp(to_number(raw, default), low, high)


def mean(values: list[float], default: float) -> float:
    if not values:
        return default
    return sum(values) / len(values)


def round_half_up(value: float) -> int:
    """Round to the nearest int with .5 going up, unlike the banker's rounding of ``round``."""
    return math.floor(value + 0.5)
