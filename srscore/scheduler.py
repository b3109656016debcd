# srscore/scheduler.py

"""
The scheduling state machine: maps (item, rating, parameters, now) to the
item's next memory state.

Items without stability walk the minute-scale step ladder; items with
stability are in review and grow (or lose) stability on each rating.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict
from datetime import datetime, timedelta
from typing import Optional, Sequence

from .constants import (
    DEFAULT_EASE_FACTOR,
    FALLBACK_FIRST_STEP_MINUTES,
    FALLBACK_NEXT_STEP_MINUTES,
    FALLBACK_RELEARNING_STEP_MINUTES,
)
from .item import retrievability as item_retrievability
from .memory_model import (
    ease_from_difficulty,
    grow_stability,
    initial_difficulty,
    initial_stability,
    interval_from_stability,
    next_difficulty,
    setback_stability,
    update_ease_factor,
)
from .models import (
    Item,
    ItemState,
    NextReviewResult,
    Rating,
    ReviewPlan,
    ensure_utc,
)
from .parameters import Parameters

logger = logging.getLogger(__name__)


def _step_minutes(steps: Sequence[float], index: int, fallback: float) -> float:
    if 0 <= index < len(steps):
        return steps[index]
    return fallback


def _minutes_from(now: datetime, minutes: float) -> datetime:
    return now + timedelta(seconds=int(minutes * 60))


def _days_from(now: datetime, days: int) -> datetime:
    return now + timedelta(days=days)


def _review_interval(stability: float, params: Parameters) -> int:
    """Whole-day interval for a stability, capped at params.maximum_interval."""
    if stability >= params.maximum_interval:
        return params.maximum_interval
    return min(params.maximum_interval, interval_from_stability(stability))


def start_review(rating: Rating, params: Parameters, now: datetime) -> ReviewPlan:
    """Graduates an item off the step ladder with fresh difficulty and stability."""
    weights = params.model_weights()
    difficulty = initial_difficulty(rating, weights)
    stability = initial_stability(rating, weights)
    interval = _review_interval(stability, params)
    return ReviewPlan(
        state=ItemState.Review,
        step=None,
        difficulty=difficulty,
        stability=stability,
        interval_days=interval,
        due=_days_from(now, interval),
        ease_factor=ease_from_difficulty(difficulty),
    )


def relearn(
    difficulty: float, params: Parameters, now: datetime, ease_factor: float
) -> ReviewPlan:
    """Sends a lapsed review item back to the first relearning step."""
    minutes = _step_minutes(
        params.relearning_steps, 0, FALLBACK_RELEARNING_STEP_MINUTES
    )
    return ReviewPlan(
        state=ItemState.Relearning,
        step=0,
        difficulty=difficulty,
        stability=setback_stability(difficulty, params.model_weights()),
        interval_days=0,
        due=_minutes_from(now, minutes),
        ease_factor=ease_factor,
    )


def _learning_step(item: Item, step: int, due: datetime) -> ReviewPlan:
    return ReviewPlan(
        state=ItemState.Learning,
        step=step,
        difficulty=item.difficulty,
        stability=item.stability,
        interval_days=0,
        due=due,
        ease_factor=(
            item.ease_factor if item.ease_factor is not None else DEFAULT_EASE_FACTOR
        ),
    )


def plan_learning(
    item: Item, rating: Rating, params: Parameters, now: datetime
) -> ReviewPlan:
    """
    Step-ladder transition for items that have no stability yet.

    Again restarts the ladder, Hard and Good advance one step while steps
    remain, and anything else (Easy, or the last step passed) graduates the
    item into review.
    """
    steps = params.learning_steps
    total_steps = max(len(steps), 1)
    current_step = item.step or 0

    if rating == Rating.Again:
        due = _minutes_from(now, _step_minutes(steps, 0, FALLBACK_FIRST_STEP_MINUTES))
        return _learning_step(item, 0, due)

    if rating in (Rating.Hard, Rating.Good) and current_step < total_steps - 1:
        next_step = current_step + 1
        due = _minutes_from(
            now, _step_minutes(steps, next_step, FALLBACK_NEXT_STEP_MINUTES)
        )
        return _learning_step(item, next_step, due)

    return start_review(rating, params, now)


def plan_review(
    item: Item,
    rating: Rating,
    params: Parameters,
    now: datetime,
    retrievability: Optional[float],
) -> ReviewPlan:
    """
    Transition for items in review.

    Difficulty and ease move with the rating. Again relearns the item;
    any other rating grows stability, and the interval is the grown
    stability rounded to whole days, capped at maximum_interval.
    """
    weights = params.model_weights()
    difficulty = next_difficulty(item.difficulty, rating, weights)
    current_ease = (
        item.ease_factor
        if item.ease_factor is not None
        else ease_from_difficulty(difficulty)
    )
    ease = update_ease_factor(current_ease, rating)

    if retrievability is None or retrievability == 0.0:
        retention = params.desired_retention
    else:
        retention = retrievability

    if rating == Rating.Again:
        return relearn(difficulty, params, now, ease)

    stability = grow_stability(item.stability, difficulty, rating, retention, weights)
    interval = _review_interval(stability, params)
    return ReviewPlan(
        state=ItemState.Review,
        step=None,
        difficulty=difficulty,
        stability=stability,
        interval_days=interval,
        due=_days_from(now, interval),
        ease_factor=ease,
    )


def calculate_next_review(
    item: Item, rating: Rating, params: Parameters, now: datetime
) -> NextReviewResult:
    """
    Computes the next review state for an item. The item is not modified.

    Args:
        item: Current memory state.
        rating: The learner's rating; names and 1-4 values are accepted.
        params: Scheduling parameters for this call.
        now: Reference timestamp of the review. Naive values are taken as UTC.

    Returns:
        A NextReviewResult carrying the new state, the rating and the
        retrievability used.

    Raises:
        InvalidRatingError: If the rating is not one of the four ratings.
    """
    rating = Rating.parse(rating)
    now = ensure_utc(now)
    recall = item_retrievability(item, now, params.desired_retention)

    if item.stability is not None:
        logger.debug(
            f"Review branch for unit {item.unit_id}: rating={rating.name}, "
            f"stability={item.stability}, retrievability={recall}"
        )
        plan = plan_review(item, rating, params, now, recall)
    else:
        logger.debug(
            f"Learning branch for unit {item.unit_id}: rating={rating.name}, "
            f"step={item.step}"
        )
        plan = plan_learning(item, rating, params, now)

    return NextReviewResult(
        **asdict(plan),
        rating=rating,
        retrievability=recall if recall is not None else params.desired_retention,
    )


next_review = calculate_next_review


class BaseScheduler(ABC):
    """
    Abstract base class for schedulers.
    """

    @abstractmethod
    def compute_next_state(
        self, item: Item, rating: Rating, now: datetime
    ) -> NextReviewResult:
        """
        Computes the next state of an item based on its cached state and a new rating.

        Args:
            item: The Item holding the current memory state.
            rating: The rating given for the current review.
            now: The UTC timestamp of the current review.

        Returns:
            A NextReviewResult containing the new state.

        Raises:
            InvalidRatingError: If the rating is invalid.
        """
        pass


class StabilityScheduler(BaseScheduler):
    """
    Scheduler bound to one immutable Parameters value.
    """

    def __init__(self, params: Optional[Parameters] = None):
        if params is None:
            params = Parameters()
        self.params = params

    def compute_next_state(
        self, item: Item, rating: Rating, now: datetime
    ) -> NextReviewResult:
        return calculate_next_review(item, rating, self.params, now)
