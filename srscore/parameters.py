"""
Scheduler parameters and the configuration source that supplies their defaults.
"""

import logging
from typing import Any, Mapping, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_DESIRED_RETENTION,
    DEFAULT_LEARNING_STEPS,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_RELEARNING_STEPS,
    DEFAULT_WEIGHTS,
)
from .exceptions import InvalidParametersError

logger = logging.getLogger(__name__)


class ModelWeights(NamedTuple):
    """Weight vector resolved into named coefficients."""

    initial_difficulty: float
    initial_difficulty_slope: float
    initial_stability: float
    initial_stability_slope: float
    difficulty_step: float
    growth_log_scale: float
    growth_stability_decay: float
    growth_retrievability_gain: float
    hard_penalty: float
    easy_bonus: float
    setback_scale: float
    setback_difficulty_power: float

    @classmethod
    def from_vector(cls, weights: Tuple[float, ...]) -> "ModelWeights":
        """Positional merge of a (possibly short) vector over DEFAULT_WEIGHTS."""
        merged = tuple(weights[: len(DEFAULT_WEIGHTS)]) + DEFAULT_WEIGHTS[len(weights):]
        return cls(*merged)


class Parameters(BaseModel):
    """Immutable configuration for one scheduling call context."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    desired_retention: float = Field(
        default=DEFAULT_DESIRED_RETENTION,
        gt=0.0,
        lt=1.0,
        description="Target recall probability, used as the retrievability fallback.",
    )
    learning_steps: Tuple[float, ...] = Field(
        default=DEFAULT_LEARNING_STEPS,
        description="Minute delays of the Learning ladder.",
    )
    relearning_steps: Tuple[float, ...] = Field(
        default=DEFAULT_RELEARNING_STEPS,
        description="Minute delays of the Relearning ladder.",
    )
    weights: Tuple[float, ...] = Field(
        default=(),
        description="Model coefficients; missing indices use DEFAULT_WEIGHTS.",
    )
    maximum_interval: int = Field(
        default=DEFAULT_MAXIMUM_INTERVAL,
        ge=1,
        description="Upper bound in days applied by due-date fuzzing.",
    )
    enable_fuzzing: bool = Field(
        default=True,
        description="Whether callers should jitter review due dates.",
    )

    def model_weights(self) -> ModelWeights:
        return ModelWeights.from_vector(self.weights)


class SchedulerSettings(BaseSettings):
    """
    Default parameter values, loaded from SRSCORE_* environment variables or
    a .env file. Tuple fields are given as JSON, e.g.
    SRSCORE_LEARNING_STEPS='[1, 10]'.
    """

    model_config = SettingsConfigDict(
        env_prefix="SRSCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    desired_retention: float = DEFAULT_DESIRED_RETENTION
    learning_steps: Tuple[float, ...] = DEFAULT_LEARNING_STEPS
    relearning_steps: Tuple[float, ...] = DEFAULT_RELEARNING_STEPS
    weights: Tuple[float, ...] = ()
    maximum_interval: int = DEFAULT_MAXIMUM_INTERVAL
    enable_fuzzing: bool = True


def load_parameters(
    overrides: Optional[Mapping[str, Any]] = None,
    settings: Optional[SchedulerSettings] = None,
) -> Parameters:
    """
    Builds Parameters from configured defaults with caller overrides on top.

    Args:
        overrides: Field values that take precedence over the defaults.
            Unknown keys are ignored.
        settings: Source of defaults. Read from the environment when omitted.

    Returns:
        An immutable Parameters value.

    Raises:
        InvalidParametersError: If a merged value has the wrong type or is out of range.
    """
    try:
        if settings is None:
            settings = SchedulerSettings()
        merged = settings.model_dump()
    except ValidationError as e:
        raise InvalidParametersError(
            f"Invalid scheduler settings in environment: {e}", e
        ) from e

    for key, value in (overrides or {}).items():
        if key in Parameters.model_fields:
            merged[key] = value
        else:
            logger.debug(f"Ignoring unknown parameter override '{key}'")

    try:
        return Parameters.model_validate(merged)
    except ValidationError as e:
        raise InvalidParametersError(f"Invalid scheduler parameters: {e}", e) from e
