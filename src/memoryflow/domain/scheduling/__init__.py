# Domain Scheduling Package
from .ledger import ReviewLedger
from .models import (
    EventKind,
    LearningItem,
    LifecycleStatus,
    ProjectionEvent,
    Rating,
    ReviewLogEntry,
    SchedulingState,
    TransitionResult,
)
from .ports import SnapshotStore

__all__ = [
    "EventKind",
    "LearningItem",
    "LifecycleStatus",
    "ProjectionEvent",
    "Rating",
    "ReviewLedger",
    "ReviewLogEntry",
    "SchedulingState",
    "SnapshotStore",
    "TransitionResult",
]
