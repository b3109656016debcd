"""
Due-date jitter for review intervals.

The scheduler itself is deterministic; callers that honour
Parameters.enable_fuzzing pass its results through fuzz_result so that
items reviewed together do not keep falling due on the same day.
"""

import dataclasses
import logging
import math
from datetime import timedelta
from typing import Callable, List, Tuple

from .models import ItemState, NextReviewResult
from .parameters import Parameters

logger = logging.getLogger(__name__)

# (start, end, factor): each day of the interval inside [start, end) widens
# the window by `factor` days.
FUZZ_RANGES: List[Tuple[float, float, float]] = [
    (2.5, 7.0, 0.15),
    (7.0, 20.0, 0.1),
    (20.0, float("inf"), 0.05),
]

MIN_FUZZ_INTERVAL: float = 2.5


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fuzz_delta(interval: float) -> float:
    if interval < MIN_FUZZ_INTERVAL:
        return 0.0
    delta = 1.0
    for start, end, factor in FUZZ_RANGES:
        span = max(0.0, min(interval, end) - start)
        delta += factor * span
    return delta


def fuzz_bounds(interval: float, maximum: int) -> Tuple[int, int]:
    """
    Inclusive day window around `interval`, kept within [2, maximum].

    The floor drops to `maximum` when the cap is below two days.
    """
    floor = min(2, maximum)
    interval = min(float(maximum), interval)
    delta = fuzz_delta(interval)
    lower = max(floor, min(maximum, _round_half_up(interval - delta)))
    upper = max(floor, min(maximum, _round_half_up(interval + delta)))
    if upper == lower and floor < upper < maximum:
        upper = lower + 1
    return lower, upper


def fuzz_interval(
    interval: int, maximum: int, rng: Callable[[], float]
) -> int:
    """Picks a day count in the fuzz window using rng() in [0, 1)."""
    if interval < MIN_FUZZ_INTERVAL:
        return min(interval, maximum)
    lower, upper = fuzz_bounds(interval, maximum)
    return min(upper, int(math.floor(lower + rng() * (1 + upper - lower))))


def fuzz_result(
    result: NextReviewResult,
    params: Parameters,
    rng: Callable[[], float],
) -> NextReviewResult:
    """
    Returns `result` with a jittered interval and due date.

    Ladder steps, short intervals and parameters with fuzzing disabled are
    returned unchanged.
    """
    if not params.enable_fuzzing or result.state is not ItemState.Review:
        return result
    if result.interval_days < MIN_FUZZ_INTERVAL:
        return result

    fuzzed = fuzz_interval(result.interval_days, params.maximum_interval, rng)
    if fuzzed == result.interval_days:
        return result

    logger.debug(f"Fuzzed interval {result.interval_days} -> {fuzzed} days")
    return dataclasses.replace(
        result,
        interval_days=fuzzed,
        due=result.due + timedelta(days=fuzzed - result.interval_days),
    )
