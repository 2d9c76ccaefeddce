"""
Forward projection of review dates for calendar and planning views.

For each item:
1. Emit the real next review ("confirmed"), pulled forward to now if overdue
2. Simulate a Good review at that time to get the next interval
3. Emit the resulting date as "projected" and repeat from the simulated state

Read-only: items are never modified.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, tzinfo

from memoryflow.application.scheduling.retention_model import transition
from memoryflow.domain.constants import DAY_MS, PROJECTION_MAX_STEPS
from memoryflow.domain.scheduling.models import (
    EventKind,
    LearningItem,
    ProjectionEvent,
    Rating,
)

logger = logging.getLogger(__name__)

CalendarData = dict[str, list[ProjectionEvent]]  # Key is YYYY-MM-DD


def project(item: LearningItem, horizon_end: int, now: int) -> list[ProjectionEvent]:
    """
    Project one item's upcoming reviews up to `horizon_end`.

    Args:
        item: The item to project
        horizon_end: Last epoch ms (inclusive) to emit events for
        now: Current epoch ms

    Returns:
        Events in chronological order; empty for the root, parentless or
        suspended items, and for a horizon that is not after `now`.
    """
    if item.is_root or item.state.is_suspended or horizon_end <= now:
        return []

    confirmed_at = max(item.state.due, now)
    if confirmed_at > horizon_end:
        return []

    events = [
        ProjectionEvent(
            item_id=item.id,
            title=item.title,
            timestamp=confirmed_at,
            kind=EventKind.CONFIRMED,
        )
    ]

    s = item.state.stability
    d = item.state.difficulty
    last_review = item.state.last_review
    cursor = confirmed_at

    for _ in range(PROJECTION_MAX_STEPS):
        result = transition(s, d, last_review, Rating.GOOD, cursor)
        next_review = cursor + result.interval_days * DAY_MS
        if next_review > horizon_end:
            break

        events.append(
            ProjectionEvent(
                item_id=item.id,
                title=item.title,
                timestamp=next_review,
                kind=EventKind.PROJECTED,
                interval_days=result.interval_days,
            )
        )
        s, d = result.stability, result.difficulty
        last_review = cursor
        cursor = next_review
    else:
        logger.warning(
            "Projection for %s hit the %d step cap", item.id, PROJECTION_MAX_STEPS
        )

    return events


def day_key(timestamp: int, tz: tzinfo | None = None) -> str:
    """Calendar bucket (YYYY-MM-DD) for an epoch ms timestamp, local time by default."""
    return datetime.fromtimestamp(timestamp / 1000, tz).strftime("%Y-%m-%d")


def generate_review_schedule(
    items: Iterable[LearningItem],
    horizon_days: float,
    now: int,
    tz: tzinfo | None = None,
) -> CalendarData:
    """
    Build the review calendar for the next `horizon_days` days.

    Within a day, confirmed events come before projected ones, then
    events are ordered by item title. Days are returned in date order.
    """
    horizon_end = now + int(horizon_days * DAY_MS)
    schedule: CalendarData = {}

    for item in items:
        for event in project(item, horizon_end, now):
            schedule.setdefault(day_key(event.timestamp, tz), []).append(event)

    for events in schedule.values():
        events.sort(key=lambda e: (e.kind != EventKind.CONFIRMED, e.title.casefold()))

    logger.debug(
        "Calendar over %s days: %d events across %d days",
        horizon_days,
        sum(len(v) for v in schedule.values()),
        len(schedule),
    )
    return dict(sorted(schedule.items()))
