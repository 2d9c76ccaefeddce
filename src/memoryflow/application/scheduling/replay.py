"""
State reconstruction from the review ledger.

Scheduling state is never patched incrementally when history changes out
of order: it is recomputed by folding the retention model over the full
ledger, sorted by review time.
"""

import logging
from collections.abc import Iterable

from memoryflow.application.scheduling.retention_model import transition
from memoryflow.domain.constants import DAY_MS
from memoryflow.domain.scheduling.models import (
    LifecycleStatus,
    Rating,
    ReviewLogEntry,
    SchedulingState,
)

logger = logging.getLogger(__name__)


def replay(entries: Iterable[ReviewLogEntry], fallback_due: int) -> SchedulingState:
    """
    Recompute scheduling state from a ledger snapshot.

    Entries are processed ascending by review timestamp (stable on ties), so
    an out-of-order list yields the same result as the chronological one.

    Args:
        entries: Ledger entries, ideally already sorted
        fallback_due: Due timestamp of the zero state, used when there are no entries

    Returns:
        The derived SchedulingState. With no entries this is the zero state
        with status NEW; the caller decides whether it should be SUSPENDED.
    """
    ordered = sorted(entries, key=lambda e: e.review_timestamp)
    state = SchedulingState.zero(due=fallback_due)

    for entry in ordered:
        result = transition(
            state.stability,
            state.difficulty,
            state.last_review,
            entry.rating,
            entry.review_timestamp,
        )
        state = SchedulingState(
            status=LifecycleStatus.REVIEW,
            stability=result.stability,
            difficulty=result.difficulty,
            due=entry.review_timestamp + result.interval_days * DAY_MS,
            last_review=entry.review_timestamp,
        )

    logger.debug(
        "Replayed %d entries -> S=%s D=%s due=%s",
        len(ordered),
        state.stability,
        state.difficulty,
        state.due,
    )
    return state


def apply_review(state: SchedulingState, rating: Rating | int, now: int) -> SchedulingState:
    """
    Apply a review happening right now without a full replay.

    Equivalent to appending an entry at `now` and replaying the whole ledger,
    provided `now >= state.last_review`.
    """
    result = transition(state.stability, state.difficulty, state.last_review, rating, now)
    return SchedulingState(
        status=LifecycleStatus.REVIEW,
        stability=result.stability,
        difficulty=result.difficulty,
        due=now + result.interval_days * DAY_MS,
        last_review=now,
    )
