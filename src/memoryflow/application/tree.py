"""
Tree operations on the item collection.

The collection is a flat mapping of id -> LearningItem forming a single
tree under the synthetic root. Every function here is pure: it returns a
new mapping and leaves its input untouched.
"""

import logging
from collections.abc import Iterator
from dataclasses import replace
from datetime import datetime, tzinfo
from typing import Literal

from memoryflow.domain.constants import (
    DAY_MS,
    LATE_NIGHT_CUTOFF_HOUR,
    OTHER_SUBJECT,
    ROOT_ID,
    ROOT_TITLE,
)
from memoryflow.domain.exceptions import ItemNotFoundError, TreeInvariantError
from memoryflow.domain.ids import generate_item_id
from memoryflow.domain.scheduling.ledger import ReviewLedger
from memoryflow.domain.scheduling.models import LearningItem, LifecycleStatus, SchedulingState

logger = logging.getLogger(__name__)

AddMode = Literal["plan", "store"]


def initial_collection() -> dict[str, LearningItem]:
    """A collection holding only the synthetic root."""
    root = LearningItem(
        id=ROOT_ID,
        parent_id=None,
        title=ROOT_TITLE,
        state=SchedulingState.zero(due=0, status=LifecycleStatus.SUSPENDED),
        ledger=ReviewLedger(),
    )
    return {ROOT_ID: root}


def get_item(items: dict[str, LearningItem], item_id: str) -> LearningItem:
    """Look up an item or raise ItemNotFoundError."""
    try:
        return items[item_id]
    except KeyError:
        raise ItemNotFoundError(item_id) from None


def with_item(items: dict[str, LearningItem], item: LearningItem) -> dict[str, LearningItem]:
    """Return a copy of the collection with `item` inserted or replaced."""
    updated = dict(items)
    updated[item.id] = item
    return updated


def initial_due(now: int, cutoff_hour: int = LATE_NIGHT_CUTOFF_HOUR, tz: tzinfo | None = None) -> int:
    """
    Due timestamp for a freshly planned item.

    Between midnight and `cutoff_hour` the user is still in "yesterday's"
    session, so "due tomorrow" means now. Otherwise the item is due in 24h.
    """
    hour = datetime.fromtimestamp(now / 1000, tz).hour
    if hour < cutoff_hour:
        return now
    return now + DAY_MS


def add_item(
    items: dict[str, LearningItem],
    parent_id: str,
    title: str,
    mode: AddMode,
    now: int,
    cutoff_hour: int = LATE_NIGHT_CUTOFF_HOUR,
    item_id: str | None = None,
    tz: tzinfo | None = None,
) -> tuple[dict[str, LearningItem], str]:
    """
    Create an item under `parent_id`.

    Args:
        mode: "plan" schedules the item as new; "store" keeps it suspended
              (never surfaced until promoted)

    Returns:
        (updated collection, new item id)
    """
    parent = get_item(items, parent_id)
    if mode not in ("plan", "store"):
        raise ValueError(f"Unknown mode: {mode!r}")

    new_id = item_id or generate_item_id()
    if new_id in items:
        raise TreeInvariantError(f"Duplicate item id: {new_id}")

    if mode == "plan":
        state = SchedulingState.zero(due=initial_due(now, cutoff_hour, tz))
    else:
        state = SchedulingState.zero(due=0, status=LifecycleStatus.SUSPENDED)

    item = LearningItem(
        id=new_id,
        parent_id=parent_id,
        title=title,
        state=state,
        ledger=ReviewLedger(),
    )
    updated = with_item(items, item)
    updated[parent_id] = replace(parent, children=parent.children + (new_id,))
    logger.debug("Added %s (%s) under %s", new_id, mode, parent_id)
    return updated, new_id


def iter_subtree(items: dict[str, LearningItem], item_id: str) -> Iterator[str]:
    """Yield `item_id` and all of its descendants (iterative, depth-first)."""
    stack = [item_id]
    seen: set[str] = set()
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        yield current
        node = items.get(current)
        if node is not None:
            stack.extend(node.children)


def remove_item(items: dict[str, LearningItem], item_id: str) -> dict[str, LearningItem]:
    """
    Remove an item together with its entire subtree.

    Raises:
        ItemNotFoundError: unknown id
        TreeInvariantError: attempt to remove the root
    """
    target = get_item(items, item_id)
    if target.is_root:
        raise TreeInvariantError("The root item cannot be removed")

    doomed = set(iter_subtree(items, item_id))
    updated = {k: v for k, v in items.items() if k not in doomed}

    parent = updated.get(target.parent_id)
    if parent is not None:
        updated[parent.id] = replace(
            parent, children=tuple(c for c in parent.children if c != item_id)
        )

    logger.debug("Removed %s and %d descendants", item_id, len(doomed) - 1)
    return updated


def root_subject(items: dict[str, LearningItem], item_id: str) -> str:
    """
    Title of the top-level subject (child of the root) containing the item.
    """
    current = items.get(item_id)
    for _ in range(len(items)):
        if current is None or current.parent_id in (ROOT_ID, None):
            break
        current = items.get(current.parent_id)
    return current.title if current is not None else OTHER_SUBJECT
