"""
Printable study plan: what to review by a target day, most urgent first.

This is a pure computation module with no I/O.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from memoryflow.application.scheduling.retention_model import retrievability
from memoryflow.application.tree import root_subject
from memoryflow.domain.constants import DAY_MS, LATE_NIGHT_CUTOFF_HOUR
from memoryflow.domain.scheduling.models import LearningItem


@dataclass
class PlanEntry:
    """
    An item scheduled for the plan, with its urgency metrics.
    """

    item_id: str
    title: str
    subject: str
    due: int
    stability: float
    difficulty: float

    # Computed metrics
    retrievability: float  # At the end of the target day
    priority: float  # difficulty * (1 - retrievability)


def end_of_day_ms(day: date, tz: tzinfo | None = None) -> int:
    """Last millisecond of `day` (local time unless `tz` is given)."""
    return int(datetime.combine(day, time.max, tzinfo=tz).timestamp() * 1000)


def default_plan_day(
    now: int, cutoff_hour: int = LATE_NIGHT_CUTOFF_HOUR, tz: tzinfo | None = None
) -> date:
    """
    Day a plan is printed for by default.

    Before `cutoff_hour` the night still belongs to yesterday, so the plan
    is for today; afterwards it is for tomorrow.
    """
    current = datetime.fromtimestamp(now / 1000, tz)
    if current.hour < cutoff_hour:
        return current.date()
    return current.date() + timedelta(days=1)


def build_study_plan(
    items: dict[str, LearningItem],
    target_day: date,
    tz: tzinfo | None = None,
) -> dict[str, list[PlanEntry]]:
    """
    Group items due by the end of `target_day` under their root subject.

    Retrievability is evaluated at the end of the target day, so the
    ranking reflects what will be most urgent then. Items never reviewed
    have R = 0.

    Returns:
        subject title -> entries sorted by priority descending
    """
    target = end_of_day_ms(target_day, tz)
    entries = [_to_entry(items, item, target) for item in _candidates(items.values(), target)]
    entries.sort(key=lambda e: e.priority, reverse=True)

    grouped: dict[str, list[PlanEntry]] = {}
    for entry in entries:
        grouped.setdefault(entry.subject, []).append(entry)
    return grouped


def _candidates(items: Iterable[LearningItem], target: int) -> Iterable[LearningItem]:
    for item in items:
        if not item.is_root and not item.state.is_suspended and item.state.due <= target:
            yield item


def _to_entry(items: dict[str, LearningItem], item: LearningItem, target: int) -> PlanEntry:
    state = item.state
    if state.last_review == 0:
        r = 0.0
    else:
        r = retrievability(state.stability, (target - state.last_review) / DAY_MS)

    return PlanEntry(
        item_id=item.id,
        title=item.title,
        subject=root_subject(items, item.id),
        due=state.due,
        stability=state.stability,
        difficulty=state.difficulty,
        retrievability=r,
        priority=state.difficulty * (1 - r),
    )
