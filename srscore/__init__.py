"""srscore - A spaced-repetition scheduling engine."""

from .models import (
    Item,
    ItemState,
    NextReviewResult,
    Rating,
    quality_from_rating,
    rating_from_quality,
)
from .constants import DEFAULT_WEIGHTS, DEFAULT_DESIRED_RETENTION
from .parameters import Parameters, SchedulerSettings, load_parameters
from .item import normalize_item, elapsed_days, retrievability
from .memory_model import calculate_interval, update_ease_factor
from .scheduler import StabilityScheduler, calculate_next_review, next_review
from .review_processor import ReviewProcessor, apply_review

__all__ = [
    "Item",
    "ItemState",
    "NextReviewResult",
    "Rating",
    "quality_from_rating",
    "rating_from_quality",
    "DEFAULT_WEIGHTS",
    "DEFAULT_DESIRED_RETENTION",
    "Parameters",
    "SchedulerSettings",
    "load_parameters",
    "normalize_item",
    "elapsed_days",
    "retrievability",
    "calculate_interval",
    "update_ease_factor",
    "StabilityScheduler",
    "calculate_next_review",
    "next_review",
    "ReviewProcessor",
    "apply_review",
]
