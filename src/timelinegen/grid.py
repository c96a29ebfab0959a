"""
Half-week grid arithmetic.

Week values live in ``[1, weeks_count]``. The renderer lays them out on a grid of
``2 * weeks_count`` ticks, tick 1 being the first half of week 1. Every function here is
pure and total; callers coerce untrusted scalars with ``to_number`` first.
"""
import math
from typing import Any, Tuple, Union

Number = Union[int, float]


def round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves going toward positive infinity."""
    return math.floor(value + 0.5)


def clamp(value: Number, lo: Number, hi: Number) -> Number:
    return max(lo, min(hi, value))


def snap_half(value: Number) -> float:
    """Snap any real number to the nearest multiple of 0.5."""
    return round_half_up(value * 2) / 2


def clamp_half(value: Number, lo: Number, hi: Number) -> float:
    return snap_half(clamp(value, lo, hi))


def is_half_step(value: Number) -> bool:
    return float(value * 2).is_integer()


def week_to_tick(week: Number) -> int:
    return round_half_up((week - 1) * 2) + 1


def tick_count(weeks_count: int) -> int:
    return weeks_count * 2


def week_span_ticks(week: int) -> Tuple[int, int]:
    """Header columns ``(first, end_exclusive)`` covered by a whole week."""
    start_tick = (week - 1) * 2 + 1
    return start_tick, start_tick + 2


def item_tick_span(item) -> Tuple[int, int]:
    """Grid columns ``(first, end_exclusive)`` an item occupies."""
    if item.type == "milestone":
        return week_span_ticks(item.week)
    return week_to_tick(item.start), week_to_tick(item.end) + 2


def to_number(value: Any, default: Number) -> float:
    """
    Coerce an untrusted scalar to a finite float.

    Numbers and numeric strings are accepted; booleans, non-finite values and anything
    else fall back to ``default``.
    """
    if isinstance(value, bool):
        return float(default)
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return float(default)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return float(default)
    else:
        return float(default)
    return number if math.isfinite(number) else float(default)
