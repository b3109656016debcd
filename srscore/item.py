"""
Item normalization and the derived quantities the scheduler reads.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

from .constants import (
    DEFAULT_DESIRED_RETENTION,
    FORGETTING_CURVE_DECAY,
    SECONDS_PER_DAY,
)
from .models import Item, ensure_utc

logger = logging.getLogger(__name__)

RawRecord = Union[Mapping[str, Any], Item]


def _record_fields(raw: RawRecord) -> Dict[str, Any]:
    if isinstance(raw, Item):
        return raw.model_dump()
    fields = dict(raw)
    # Storage rows name the column due_date; it wins over a plain `due`.
    if fields.get("due_date") is not None:
        fields["due"] = fields["due_date"]
    return fields


def normalize_item(
    raw: RawRecord, overrides: Optional[Mapping[str, Any]] = None
) -> Item:
    """
    Converts a loosely typed record into an Item, then applies overrides.

    Known override keys replace the normalized value outright; unknown keys
    are dropped. Nothing is clamped here; bounds are enforced by the
    scheduler when it writes new values.

    Args:
        raw: A mapping (e.g. a database row) or an existing Item.
        overrides: Field values to substitute after normalization.

    Returns:
        A new Item.
    """
    fields = _record_fields(raw)
    for key, value in (overrides or {}).items():
        if key in Item.model_fields:
            fields[key] = value
        else:
            logger.debug(f"Dropping unknown item override '{key}'")
    return Item.model_validate(fields)


def elapsed_days(item: Item, now: datetime) -> int:
    """Whole days since the last review; 0 if never reviewed or if `now` is earlier."""
    if item.last_reviewed_at is None:
        return 0
    seconds = (ensure_utc(now) - item.last_reviewed_at).total_seconds()
    return max(0, int(seconds // SECONDS_PER_DAY))


def retrievability(
    item: Item,
    now: datetime,
    desired_retention: float = DEFAULT_DESIRED_RETENTION,
) -> Optional[float]:
    """
    Probability of recall at `now` under a power-law forgetting curve.

    R(t) = (1 + f * t / S) ** d with d = FORGETTING_CURVE_DECAY and
    f = desired_retention ** (1 / d) - 1, so R(0) = 1 and R(S) equals
    desired_retention.

    Returns None for items without stability (not yet in review) and 0.0
    for a non-positive stability.
    """
    if item.stability is None:
        return None
    if item.stability <= 0:
        return 0.0
    elapsed = elapsed_days(item, now)
    factor = desired_retention ** (1 / FORGETTING_CURVE_DECAY) - 1
    return (1 + factor * elapsed / item.stability) ** FORGETTING_CURVE_DECAY
