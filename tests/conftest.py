from datetime import datetime, timezone

import pytest

from memoryflow.domain.scheduling.ledger import ReviewLedger
from memoryflow.domain.scheduling.models import (
    LearningItem,
    LifecycleStatus,
    SchedulingState,
)

# 2024-01-15 12:00:00 UTC
T0 = int(datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc).timestamp() * 1000)


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def make_item():
    """Factory for learning items with sensible defaults."""

    def _make(
        item_id="item",
        title=None,
        parent_id="root",
        status=None,
        stability=0.0,
        difficulty=0.0,
        due=T0,
        last_review=0,
        ledger=None,
        children=(),
    ):
        return LearningItem(
            id=item_id,
            parent_id=parent_id,
            title=title or item_id,
            state=SchedulingState(
                status=status or (LifecycleStatus.NEW if stability == 0 else LifecycleStatus.REVIEW),
                stability=stability,
                difficulty=difficulty,
                due=due,
                last_review=last_review,
            ),
            ledger=ledger or ReviewLedger(),
            children=tuple(children),
        )

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/data
    monkeypatch.setenv("HOME", str(home))
    return home
