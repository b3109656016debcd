"""
Review processing on top of the scheduler.

The scheduler only computes a NextReviewResult. This module is the caller
side of that contract:
1. Timestamp handling
2. Scheduler computation
3. Optional due-date fuzzing
4. Folding the result back onto the item, including its quality history

Persistence of the returned Item is left to the caller.
"""

import logging
import random
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Tuple

from .fuzz import fuzz_result
from .item import RawRecord, elapsed_days, normalize_item
from .models import Item, NextReviewResult, Rating, ensure_utc
from .scheduler import StabilityScheduler

# Initialize logger
logger = logging.getLogger(__name__)


def apply_review(item: Item, result: NextReviewResult, now: datetime) -> Item:
    """
    Returns a new Item carrying the scheduler's result.

    The review is recorded: last_reviewed_at becomes `now`, repetitions is
    incremented and the rating's quality is appended to quality_history.
    """
    now = ensure_utc(now)
    quality = result.quality
    return item.model_copy(
        update={
            "state": result.state,
            "step": result.step,
            "difficulty": result.difficulty,
            "stability": result.stability,
            "interval": result.interval_days,
            "due": result.due,
            "ease_factor": result.ease_factor,
            "retrievability": result.retrievability,
            "elapsed_days": elapsed_days(item, now),
            "last_reviewed_at": now,
            "repetitions": item.repetitions + 1,
            "last_quality": quality,
            "quality_history": item.quality_history + (quality,),
        }
    )


class ReviewProcessor:
    """
    Processes review submissions with consistent logic across callers.
    """

    def __init__(
        self,
        scheduler: StabilityScheduler,
        rng: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the ReviewProcessor.

        Args:
            scheduler: Scheduler instance for computing next states
            rng: Source of uniform floats in [0, 1) for due-date fuzzing.
                Defaults to random.random.
        """
        self.scheduler = scheduler
        self.rng = rng or random.random

    def process_review(
        self,
        item: Item,
        rating: Rating,
        reviewed_at: Optional[datetime] = None,
    ) -> Tuple[Item, NextReviewResult]:
        """
        Process a review submission.

        Args:
            item: The item being reviewed
            rating: The learner's rating (Again, Hard, Good, Easy)
            reviewed_at: Review timestamp (defaults to current time)

        Returns:
            The updated Item and the NextReviewResult it was built from.

        Raises:
            InvalidRatingError: If the rating is invalid
        """
        ts = reviewed_at or datetime.now(timezone.utc)

        logger.debug(f"Processing review for unit {item.unit_id} with rating {rating}")

        try:
            result = self.scheduler.compute_next_state(item, rating, ts)
            result = fuzz_result(result, self.scheduler.params, self.rng)
            updated = apply_review(item, result, ts)
        except Exception:
            logger.exception(f"Failed to process review for unit {item.unit_id}")
            raise

        logger.debug(
            f"Review processed for unit {item.unit_id}. "
            f"Next due: {updated.due}, State: {updated.state}"
        )
        return updated, result

    def process_record(
        self,
        raw: RawRecord,
        rating: Rating,
        reviewed_at: Optional[datetime] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[Item, NextReviewResult]:
        """
        Normalizes a raw record, then processes the review.

        This is a convenience method for callers that hold storage rows
        rather than Items.
        """
        item = normalize_item(raw, overrides)
        return self.process_review(item, rating, reviewed_at)
