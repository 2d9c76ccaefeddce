"""
Due-set selection for review sessions.

Builds the actionable review queue at a given instant by:
1. Dropping the root and suspended items
2. Keeping items whose due timestamp has passed
3. Ordering most-overdue first (stable on ties)
"""

from collections.abc import Iterable

from memoryflow.domain.scheduling.models import LearningItem


def is_due(item: LearningItem, now: int) -> bool:
    """True if the item is eligible for a real review at `now`."""
    return not item.is_root and not item.state.is_suspended and item.state.due <= now


def select_due(items: Iterable[LearningItem], now: int) -> list[LearningItem]:
    """
    Return the review queue at `now`, earliest due first.

    Ties keep the order of `items`.
    """
    return sorted((item for item in items if is_due(item, now)), key=lambda i: i.state.due)
