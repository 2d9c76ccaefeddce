"""
Review Service: application layer orchestrator.

Loads the item collection from a SnapshotStore, applies one pure
operation, and saves the result. The item-level functions below are
usable without a store.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import replace
from datetime import date, tzinfo

from memoryflow.application import tree
from memoryflow.application.scheduling.due_selector import select_due
from memoryflow.application.scheduling.projection import (
    CalendarData,
    generate_review_schedule,
)
from memoryflow.application.scheduling.replay import apply_review, replay
from memoryflow.application.scheduling.retention_model import preview as preview_outcomes
from memoryflow.application.study_plan import PlanEntry, build_study_plan, default_plan_day
from memoryflow.domain.constants import DAY_MS, LATE_NIGHT_CUTOFF_HOUR
from memoryflow.domain.exceptions import TreeInvariantError
from memoryflow.domain.scheduling.ledger import ReviewLedger
from memoryflow.domain.scheduling.models import (
    LearningItem,
    LifecycleStatus,
    Rating,
    ReviewLogEntry,
    SchedulingState,
    TransitionResult,
)
from memoryflow.domain.scheduling.ports import SnapshotStore

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Item-level operations (pure)
# ---------------------------------------------------------------------------


def review_item(item: LearningItem, rating: Rating | int, now: int) -> LearningItem:
    """
    Record a review happening at `now`.

    Takes the single-step fast path when `now` is not earlier than the last
    replayed review; otherwise falls back to a full replay.
    """
    _require_schedulable(item)
    rating = Rating.parse(rating)
    state = item.state

    if now >= state.last_review:
        new_state = apply_review(state, rating, now)
        state_after = TransitionResult(
            stability=new_state.stability,
            difficulty=new_state.difficulty,
            interval_days=(new_state.due - now) // DAY_MS,
        )
        ledger, _ = item.ledger.append(rating, now, state_after=state_after)
    else:
        ledger, _ = item.ledger.append(rating, now)
        new_state = replay(ledger.sorted_entries(), fallback_due=state.due)
    return _rebuilt(item, ledger, new_state)


def log_item_review(item: LearningItem, rating: Rating | int, at: int) -> LearningItem:
    """Insert a review at an arbitrary time and rebuild state from the full ledger."""
    _require_schedulable(item)
    ledger, _ = item.ledger.append(rating, at)
    new_state = replay(ledger.sorted_entries(), fallback_due=item.state.due)
    return _rebuilt(item, ledger, new_state)


def delete_item_log(item: LearningItem, log_id: str, now: int) -> LearningItem:
    """
    Delete one log entry and rebuild state.

    Removing the last entry resets the item to a fresh, due-now `new` item
    (or a zero-state suspended one, if it was suspended).
    """
    ledger = item.ledger.remove(log_id)
    if ledger.is_empty:
        new_state = SchedulingState.zero(due=now)
    else:
        new_state = replay(ledger.sorted_entries(), fallback_due=now)
    return _rebuilt(item, ledger, new_state)


def suspend_item(item: LearningItem) -> LearningItem:
    """Exclude an item from due selection and projection until promoted."""
    _require_schedulable(item)
    return replace(item, state=replace(item.state, status=LifecycleStatus.SUSPENDED))


def promote_item(item: LearningItem, due: int) -> LearningItem:
    """
    Bring a suspended item back into scheduling.

    Items with history resume from their replayed state; items without
    become `new` and are due at `due`.
    """
    _require_schedulable(item)
    if not item.state.is_suspended:
        return item
    if item.ledger.is_empty:
        return replace(item, state=SchedulingState.zero(due=due))
    return replace(item, state=replay(item.ledger.sorted_entries(), fallback_due=due))


def _require_schedulable(item: LearningItem) -> None:
    if item.is_root:
        raise TreeInvariantError("The root item is not scheduled")


def _rebuilt(item: LearningItem, ledger: ReviewLedger, state: SchedulingState) -> LearningItem:
    # Only promote_item lifts a suspension
    if item.state.is_suspended:
        state = replace(state, status=LifecycleStatus.SUSPENDED)
    return replace(item, ledger=ledger, state=state)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ReviewService:
    """
    Application service for review sessions, history edits and planning views.

    Follows Dependency Inversion: depends on the SnapshotStore abstraction,
    not concrete adapter implementations.
    """

    def __init__(
        self,
        store: SnapshotStore,
        cutoff_hour: int = LATE_NIGHT_CUTOFF_HOUR,
        clock: Callable[[], int] | None = None,
        tz: tzinfo | None = None,
    ):
        """
        Args:
            store: The repository (port) holding the item collection.
            cutoff_hour: Hour before which a night still counts as the previous day.
            clock: Source of "now" in epoch ms; wall clock if not provided.
            tz: Time zone for day boundaries; local time if not provided.
        """
        self._store = store
        self._cutoff_hour = cutoff_hour
        self._clock = clock or now_ms
        self._tz = tz

    # --- Reviews and history ---

    def review(self, item_id: str, rating: Rating | int, now: int | None = None) -> LearningItem:
        now = self._now(now)
        return self._update(item_id, lambda item: review_item(item, rating, now), "Reviewed")

    def log_review(self, item_id: str, rating: Rating | int, at: int) -> LearningItem:
        return self._update(item_id, lambda item: log_item_review(item, rating, at), "Logged")

    def delete_log(self, item_id: str, log_id: str, now: int | None = None) -> LearningItem:
        now = self._now(now)
        return self._update(
            item_id, lambda item: delete_item_log(item, log_id, now), "Deleted log from"
        )

    def preview(self, item_id: str, now: int | None = None) -> dict[Rating, TransitionResult]:
        """Next interval for each rating, without recording a review."""
        item = tree.get_item(self._store.load(), item_id)
        _require_schedulable(item)
        return preview_outcomes(item.state, self._now(now))

    def history(self, item_id: str) -> list[ReviewLogEntry]:
        """Ledger of an item in review-time order."""
        return tree.get_item(self._store.load(), item_id).ledger.sorted_entries()

    # --- Tree ---

    def add_item(
        self, parent_id: str, title: str, mode: tree.AddMode = "plan", now: int | None = None
    ) -> str:
        items, new_id = tree.add_item(
            self._store.load(),
            parent_id,
            title,
            mode,
            self._now(now),
            cutoff_hour=self._cutoff_hour,
            tz=self._tz,
        )
        self._store.save(items)
        logger.info("Added %r (%s) under %s", title, mode, parent_id)
        return new_id

    def remove_item(self, item_id: str) -> None:
        items = tree.remove_item(self._store.load(), item_id)
        self._store.save(items)
        logger.info("Removed %s and its subtree", item_id)

    def suspend(self, item_id: str) -> LearningItem:
        return self._update(item_id, suspend_item, "Suspended")

    def promote(self, item_id: str, now: int | None = None) -> LearningItem:
        due = tree.initial_due(self._now(now), self._cutoff_hour, self._tz)
        return self._update(item_id, lambda item: promote_item(item, due), "Promoted")

    # --- Views ---

    def get_item(self, item_id: str) -> LearningItem:
        return tree.get_item(self._store.load(), item_id)

    def due_queue(self, now: int | None = None) -> list[LearningItem]:
        return select_due(self._store.load().values(), self._now(now))

    def calendar(self, horizon_days: float, now: int | None = None) -> CalendarData:
        return generate_review_schedule(
            self._store.load().values(), horizon_days, self._now(now), tz=self._tz
        )

    def study_plan(
        self, day: date | None = None, now: int | None = None
    ) -> tuple[date, dict[str, list[PlanEntry]]]:
        """
        Priority list for `day` (default: today before the cutoff hour, else tomorrow).

        Returns:
            (the day planned for, subject -> entries)
        """
        if day is None:
            day = default_plan_day(self._now(now), self._cutoff_hour, self._tz)
        return day, build_study_plan(self._store.load(), day, tz=self._tz)

    # --- Internals ---

    def _now(self, now: int | None) -> int:
        return self._clock() if now is None else now

    def _update(
        self,
        item_id: str,
        operation: Callable[[LearningItem], LearningItem],
        verb: str,
    ) -> LearningItem:
        items = self._store.load()
        updated = operation(tree.get_item(items, item_id))
        self._store.save(tree.with_item(items, updated))
        logger.info(
            "%s %s: S=%s D=%s status=%s",
            verb,
            item_id,
            updated.state.stability,
            updated.state.difficulty,
            updated.state.status.value,
        )
        return updated
