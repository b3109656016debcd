"""
Pure formulas of the memory model: difficulty, stability and ease updates,
plus the legacy ease-based interval rule.

All functions are side-effect free and total over their documented inputs.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .constants import (
    EASE_DELTAS,
    MAX_DIFFICULTY,
    MAX_EASE_FACTOR,
    MAX_GROWTH_RETRIEVABILITY,
    MIN_DIFFICULTY,
    MIN_EASE_FACTOR,
    MIN_GROWN_STABILITY,
    MIN_GROWTH_RETRIEVABILITY,
    MIN_INITIAL_STABILITY,
    MIN_SETBACK_STABILITY,
)
from .models import Rating, quality_from_rating
from .parameters import ModelWeights


def clamp(value: float, minimum: float, maximum: float) -> float:
    if value < minimum:
        return minimum
    if value > maximum:
        return maximum
    return value


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Rounds halves away from zero (round() would round them to even)."""
    exponent = Decimal(1).scaleb(-ndigits)
    return float(Decimal(repr(value)).quantize(exponent, rounding=ROUND_HALF_UP))


def quality_delta(rating: Rating) -> int:
    """Again -> -2, Hard -> 0, Good -> 1, Easy -> 2."""
    return quality_from_rating(rating) - 2


def initial_difficulty(rating: Rating, weights: ModelWeights) -> float:
    return clamp(
        weights.initial_difficulty
        + weights.initial_difficulty_slope * quality_delta(rating),
        MIN_DIFFICULTY,
        MAX_DIFFICULTY,
    )


def initial_stability(rating: Rating, weights: ModelWeights) -> float:
    return max(
        MIN_INITIAL_STABILITY,
        weights.initial_stability
        + weights.initial_stability_slope * quality_delta(rating),
    )


def next_difficulty(
    difficulty: Optional[float], rating: Rating, weights: ModelWeights
) -> float:
    """Shifts difficulty by half a quality step; items without one start fresh."""
    if difficulty is None:
        return initial_difficulty(rating, weights)
    delta = weights.difficulty_step * (quality_delta(rating) / 2)
    return clamp(difficulty + delta, MIN_DIFFICULTY, MAX_DIFFICULTY)


def grow_stability(
    stability: float,
    difficulty: float,
    rating: Rating,
    retrievability: float,
    weights: ModelWeights,
) -> float:
    """
    Stability after a successful review.

    Growth is larger for easier items and for reviews made at lower
    retrievability. Hard applies a penalty and Easy a bonus on top.
    """
    retrieval = clamp(
        retrievability, MIN_GROWTH_RETRIEVABILITY, MAX_GROWTH_RETRIEVABILITY
    )
    factor = 1.0 + (
        math.exp(weights.growth_log_scale)
        * (11 - difficulty)
        * math.pow(retrieval, -weights.growth_stability_decay)
        * (math.exp((1 - retrieval) * weights.growth_retrievability_gain) - 1)
    )
    hard_penalty = weights.hard_penalty if rating == Rating.Hard else 1.0
    easy_bonus = 1.0 + weights.easy_bonus if rating == Rating.Easy else 1.0
    return max(MIN_GROWN_STABILITY, stability * factor * hard_penalty * easy_bonus)


def setback_stability(difficulty: float, weights: ModelWeights) -> float:
    """Stability after a lapse: harder items fall further."""
    return max(
        MIN_SETBACK_STABILITY,
        weights.setback_scale
        * math.pow(difficulty, -weights.setback_difficulty_power),
    )


def interval_from_stability(stability: float) -> int:
    """Whole days for a stability, rounded to one decimal first, minimum 1."""
    return max(1, int(round_half_up(round_half_up(stability, 1))))


def ease_from_difficulty(difficulty: float) -> float:
    """Linear map of difficulty 1.0-10.0 onto ease 3.7-1.3."""
    return MAX_EASE_FACTOR - (difficulty - MIN_DIFFICULTY) * (
        (MAX_EASE_FACTOR - MIN_EASE_FACTOR) / (MAX_DIFFICULTY - MIN_DIFFICULTY)
    )


def update_ease_factor(current: float, rating: Rating) -> float:
    delta = EASE_DELTAS[Rating.parse(rating).name.lower()]
    return clamp(current + delta, MIN_EASE_FACTOR, MAX_EASE_FACTOR)


def calculate_interval(interval: int, ease_factor: float, rating: Rating) -> int:
    """
    Legacy ease-based interval growth, for callers bypassing the stability model.

    Args:
        interval: Previously scheduled interval in days.
        ease_factor: Multiplier applied to intervals longer than one day.
        rating: The rating of the current review.

    Returns:
        The next interval in days, never less than 1.
    """
    rating = Rating.parse(rating)
    if interval == 0 and rating == Rating.Again:
        return 1

    if interval <= 0:
        base = 1
    elif interval == 1:
        base = 6
    else:
        base = int(round_half_up(interval * ease_factor))

    if rating == Rating.Again:
        adjusted = 1
    elif rating == Rating.Hard:
        adjusted = max(1, int(round_half_up(base * 0.8)))
    elif rating == Rating.Easy:
        adjusted = int(round_half_up(base * 1.3))
    else:
        adjusted = base

    return max(1, adjusted)
