"""
Data models for the scheduling engine: ratings, item states, the per-item
memory record and the scheduler's result value.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .exceptions import InvalidRatingError, InvalidStateError


class Rating(IntEnum):
    """
    Represents the learner's rating of their recall performance.
    """

    Again = 1
    Hard = 2
    Good = 3
    Easy = 4

    @classmethod
    def parse(cls, value: Any) -> "Rating":
        """
        Coerce a caller-supplied rating into a Rating.

        Accepts a Rating, its name in any case ("again", "Good"), or its
        integer value (1=Again, 2=Hard, 3=Good, 4=Easy).

        Raises:
            InvalidRatingError: If the value does not name one of the four ratings.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if member.name.lower() == value.strip().lower():
                    return member
        elif isinstance(value, int) and not isinstance(value, bool):
            if 1 <= value <= 4:
                return cls(value)
        raise InvalidRatingError(
            f"Invalid rating: {value!r}. Must be one of again, hard, good, easy (1-4)."
        )


QUALITY_FROM_RATING = {
    Rating.Again: 0,
    Rating.Hard: 2,
    Rating.Good: 3,
    Rating.Easy: 4,
}

# 1 has no forward counterpart; it reads back as Hard.
RATING_FROM_QUALITY = {
    0: Rating.Again,
    1: Rating.Hard,
    2: Rating.Hard,
    3: Rating.Good,
    4: Rating.Easy,
}


def quality_from_rating(rating: Rating) -> int:
    """Converts a rating into the 0-4 quality score used by the formulas."""
    return QUALITY_FROM_RATING[Rating.parse(rating)]


def rating_from_quality(score: int) -> Rating:
    """Maps a 0-4 quality score to the nearest discrete rating."""
    try:
        return RATING_FROM_QUALITY[score]
    except (KeyError, TypeError) as e:
        raise InvalidRatingError(
            f"Invalid quality score: {score!r}. Must be 0-4.", e
        ) from e


class ItemState(str, Enum):
    """
    Discrete stage of an item's memory trace.
    """

    Learning = "learning"
    Review = "review"
    Relearning = "relearning"

    @classmethod
    def coerce(cls, value: Any) -> Optional["ItemState"]:
        """Returns the matching state, or None if the value names no state."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if lowered in (member.value, member.name.lower()):
                    return member
        return None


@dataclass(frozen=True)
class LearningPhase:
    step: int


@dataclass(frozen=True)
class RelearningPhase:
    step: int
    stability: Optional[float] = None


@dataclass(frozen=True)
class ReviewPhase:
    stability: float


Phase = Union[LearningPhase, RelearningPhase, ReviewPhase]


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Assumes UTC for naive datetimes."""
    if value is None:
        return None
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Item(BaseModel):
    """
    Memory-state record for one (learner, study unit) pair.

    Items are immutable; the scheduler computes a NextReviewResult and the
    caller folds it into a new Item (see review_processor.apply_review).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    learner_id: Optional[Any] = Field(
        default=None,
        validation_alias=AliasChoices("learner_id", "user_id"),
        description="Opaque learner identifier supplied by the persistence layer.",
    )
    unit_id: Optional[Any] = Field(
        default=None,
        validation_alias=AliasChoices("unit_id", "word_id"),
        description="Opaque identifier of the study unit (word, card...).",
    )
    state: Optional[ItemState] = Field(
        default=ItemState.Learning,
        description="Learning, Review or Relearning. None if the stored value was unrecognised.",
    )
    step: Optional[int] = Field(
        default=None,
        description="Index into the active step ladder (Learning/Relearning only).",
    )
    difficulty: Optional[float] = Field(
        default=None, description="Intrinsic hardness, 1.0-10.0."
    )
    stability: Optional[float] = Field(
        default=None,
        description="Days until recall probability decays to the desired retention.",
    )
    interval: Optional[int] = Field(
        default=0,
        description="Days scheduled at the last transition; 0 during ladder steps.",
    )
    due: Optional[datetime] = Field(
        default=None, description="When the item next becomes eligible for review."
    )
    ease_factor: Optional[float] = Field(
        default=None, description="Legacy interval multiplier, 1.3-3.7."
    )
    last_reviewed_at: Optional[datetime] = Field(
        default=None, description="UTC timestamp of the previous review."
    )
    quality_history: Tuple[int, ...] = Field(
        default_factory=tuple,
        description="Append-only sequence of past quality scores.",
    )
    repetitions: int = Field(default=0, description="Number of reviews recorded.")
    last_quality: Optional[int] = Field(
        default=None, description="Quality score of the most recent review."
    )
    elapsed_days: Optional[int] = Field(
        default=None, description="Cached whole days since last review."
    )
    retrievability: Optional[float] = Field(
        default=None, description="Cached recall probability at the last review."
    )

    @field_validator("state", mode="before")
    @classmethod
    def coerce_state(cls, value: Any) -> Optional[ItemState]:
        """Unrecognised states normalise to None instead of failing."""
        return ItemState.coerce(value)

    @field_validator("quality_history", mode="before")
    @classmethod
    def default_quality_history(cls, value: Any) -> Any:
        return () if value is None else value

    @field_validator("repetitions", mode="before")
    @classmethod
    def default_repetitions(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("due", "last_reviewed_at")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Naive timestamps are taken to be UTC."""
        return ensure_utc(value)

    @property
    def phase(self) -> Optional[Phase]:
        """The stored state as a tagged union, or None if the fields disagree."""
        if self.state is ItemState.Learning:
            return LearningPhase(step=self.step or 0)
        if self.state is ItemState.Relearning:
            return RelearningPhase(step=self.step or 0, stability=self.stability)
        if (
            self.state is ItemState.Review
            and self.stability is not None
            and self.step is None
        ):
            return ReviewPhase(stability=self.stability)
        return None


@dataclass(frozen=True)
class ReviewPlan:
    """
    Next memory state computed by one of the scheduler branches.
    """

    state: ItemState
    step: Optional[int]
    difficulty: Optional[float]
    stability: Optional[float]
    interval_days: int
    due: datetime
    ease_factor: Optional[float]

    def __post_init__(self) -> None:
        if self.state is ItemState.Review and self.step is not None:
            raise InvalidStateError("A review state cannot carry a ladder step.")
        if self.state is not ItemState.Review and self.step is None:
            raise InvalidStateError(
                f"A {self.state.value} state requires a ladder step."
            )

    @property
    def phase(self) -> Phase:
        if self.state is ItemState.Review:
            return ReviewPhase(stability=self.stability)
        if self.state is ItemState.Relearning:
            return RelearningPhase(step=self.step, stability=self.stability)
        return LearningPhase(step=self.step)


@dataclass(frozen=True)
class NextReviewResult(ReviewPlan):
    """
    A ReviewPlan plus the rating that produced it and the retrievability
    used, for caller diagnostics.
    """

    rating: Rating
    retrievability: float

    @property
    def quality(self) -> int:
        return quality_from_rating(self.rating)
