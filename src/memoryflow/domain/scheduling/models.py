"""
Domain models for spaced-repetition scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any

from memoryflow.domain.exceptions import InvalidRatingError

if TYPE_CHECKING:
    from memoryflow.domain.scheduling.ledger import ReviewLedger


class Rating(IntEnum):
    """User grade after a review (4-point scale)."""

    AGAIN = 1  # Retrieval failed
    HARD = 2  # Recalled with high effort
    GOOD = 3  # Recalled normally
    EASY = 4  # Recalled fluently

    @classmethod
    def parse(cls, value: Any) -> Rating:
        """
        Coerce an int (1-4), a digit string or a grade name into a Rating.

        Raises:
            InvalidRatingError: if the value does not name one of the four grades.
        """
        if isinstance(value, Rating):
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                value = int(text)
            else:
                try:
                    return cls[text.upper()]
                except KeyError:
                    raise InvalidRatingError(f"Unknown rating: {value!r}") from None
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidRatingError(f"Unknown rating: {value!r}")
        try:
            return cls(value)
        except ValueError:
            raise InvalidRatingError(f"Rating must be 1-4, got {value}") from None


class LifecycleStatus(str, Enum):
    """Scheduling lifecycle of a learning item."""

    NEW = "new"
    LEARNING = "learning"  # Legacy value, treated like REVIEW
    REVIEW = "review"
    SUSPENDED = "suspended"


class EventKind(str, Enum):
    """Kind of calendar event emitted by the projection engine."""

    CONFIRMED = "confirmed"
    PROJECTED = "projected"


@dataclass(frozen=True)
class TransitionResult:
    """
    Output of one retention-model step.

    Attributes:
        stability: New stability in days (rounded).
        difficulty: New difficulty in [1, 10] (rounded).
        interval_days: Days until the next review (0 only when stability is 0).
    """

    stability: float
    difficulty: float
    interval_days: int


@dataclass(frozen=True)
class ReviewLogEntry:
    """
    A single review event in an item's ledger.

    Attributes:
        id: Unique identifier, used for deletion.
        rating: Grade given at the review.
        review_timestamp: Epoch milliseconds the review is considered to have happened.
        state_after: Informational snapshot written by live reviews; never read by replay.
    """

    id: str
    rating: Rating
    review_timestamp: int
    state_after: TransitionResult | None = None


@dataclass(frozen=True)
class SchedulingState:
    """
    Derived scheduling snapshot for an item.

    Attributes:
        status: Lifecycle status.
        stability: S, 0 if never reviewed.
        difficulty: D in [1, 10], 0 if never reviewed.
        due: Epoch milliseconds at which the item becomes eligible.
        last_review: Epoch milliseconds of the latest replayed review (0 if none).
    """

    status: LifecycleStatus = LifecycleStatus.NEW
    stability: float = 0.0
    difficulty: float = 0.0
    due: int = 0
    last_review: int = 0

    @classmethod
    def zero(cls, due: int, status: LifecycleStatus = LifecycleStatus.NEW) -> SchedulingState:
        return cls(status=status, stability=0.0, difficulty=0.0, due=due, last_review=0)

    @property
    def is_suspended(self) -> bool:
        return self.status == LifecycleStatus.SUSPENDED


@dataclass(frozen=True)
class LearningItem:
    """
    A node in the knowledge tree.

    The synthetic root is the only item whose parent_id is None.
    `extras` carries snapshot fields the core does not interpret
    (UI flags such as isExpanded) so they survive a load/save cycle.
    """

    id: str
    parent_id: str | None
    title: str
    state: SchedulingState
    ledger: ReviewLedger
    children: tuple[str, ...] = ()
    extras: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


@dataclass(frozen=True)
class ProjectionEvent:
    """
    One entry of the review calendar.

    Attributes:
        item_id: Item the event belongs to.
        title: Item title (used for ordering within a day).
        timestamp: Epoch milliseconds of the (real or simulated) review.
        kind: CONFIRMED for the real next review, PROJECTED for simulated ones.
        interval_days: Interval that led to a projected event.
    """

    item_id: str
    title: str
    timestamp: int
    kind: EventKind
    interval_days: int | None = None
