import os
import pytest
from datetime import datetime, timedelta, timezone

from srscore.models import Item, ItemState
from srscore.parameters import Parameters


# each test runs on cwd to its temp dir, so a stray .env never feeds settings
@pytest.fixture(autouse=True)
def go_to_tmpdir(tmp_path, monkeypatch):
    """
    Change the working directory to the test's tmp_path and clear SRSCORE_*
    environment variables for the duration of the test.
    """
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("SRSCORE_"):
            monkeypatch.delenv(name)
    yield


@pytest.fixture
def now() -> datetime:
    """Fixed UTC review timestamp."""
    return datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def params() -> Parameters:
    """
    Default parameters: learning ladder (1, 10) minutes, relearning (10,),
    and an empty weight vector so every formula uses its per-index default.
    """
    return Parameters()


@pytest.fixture
def new_item() -> Item:
    """An item that has just entered the learner's queue."""
    return Item(learner_id=1, unit_id=2, state=ItemState.Learning, step=0)


@pytest.fixture
def review_item(now: datetime) -> Item:
    """An item in review, last seen a day ago and overdue by an hour."""
    return Item(
        learner_id=1,
        unit_id=2,
        state=ItemState.Review,
        stability=3.0,
        difficulty=5.0,
        ease_factor=2.4,
        interval=3,
        last_reviewed_at=now - timedelta(days=1),
        due=now - timedelta(hours=1),
    )
