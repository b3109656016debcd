"""
Memory-model constants.

This module contains the static defaults used by the scheduler formulas.
No runtime configuration or environment lookups - pure constants only.
"""
from typing import Dict, Tuple

# Per-index defaults for the weight vector ('w').
# A caller-supplied vector shorter than this falls back to these values
# position by position.
DEFAULT_WEIGHTS: Tuple[float, ...] = (
    5.0,   # w[0]  initial difficulty
    0.3,   # w[1]  initial difficulty slope per quality step
    2.5,   # w[2]  initial stability (days)
    1.2,   # w[3]  initial stability slope per quality step
    0.15,  # w[4]  difficulty step on review
    0.5,   # w[5]  growth scale (log)
    0.3,   # w[6]  growth decay on retrievability
    0.2,   # w[7]  growth gain on forgetting
    0.85,  # w[8]  hard penalty
    0.15,  # w[9]  easy bonus
    0.5,   # w[10] setback scale
    0.5,   # w[11] setback difficulty power
)

# Default desired retention rate if not specified elsewhere.
DEFAULT_DESIRED_RETENTION: float = 0.9

# Step ladders, in minutes.
DEFAULT_LEARNING_STEPS: Tuple[float, ...] = (1.0, 10.0)
DEFAULT_RELEARNING_STEPS: Tuple[float, ...] = (10.0,)

# Used when a ladder is empty or an index is missing.
FALLBACK_FIRST_STEP_MINUTES: float = 1.0
FALLBACK_NEXT_STEP_MINUTES: float = 10.0
FALLBACK_RELEARNING_STEP_MINUTES: float = 10.0

DEFAULT_MAXIMUM_INTERVAL: int = 36500

MIN_DIFFICULTY: float = 1.0
MAX_DIFFICULTY: float = 10.0

MIN_EASE_FACTOR: float = 1.3
MAX_EASE_FACTOR: float = 3.7
DEFAULT_EASE_FACTOR: float = 2.5

# Stability floors (days).
MIN_INITIAL_STABILITY: float = 0.5
MIN_GROWN_STABILITY: float = 0.5
MIN_SETBACK_STABILITY: float = 0.3

# Retrievability is clamped to this range inside the growth formula.
MIN_GROWTH_RETRIEVABILITY: float = 0.01
MAX_GROWTH_RETRIEVABILITY: float = 0.99

# Power-law forgetting curve exponent.
FORGETTING_CURVE_DECAY: float = -0.5

SECONDS_PER_DAY: int = 86_400

# Ease adjustment per rating name.
EASE_DELTAS: Dict[str, float] = {
    "again": -0.35,
    "hard": -0.15,
    "good": 0.0,
    "easy": 0.15,
}
