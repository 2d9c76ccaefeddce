"""
Snapshot codec: item collection <-> JSON-compatible mapping.

Wire shape per item (camelCase, as written by earlier versions):

    {id, parentId, title, children,
     fsrs: {state, s, d, due, lastReview},
     logs: [{id, rating, reviewDate, stateAfter?}]}

Fields are additive: `logs` was introduced after the first release and
defaults to an empty list; `reviewLog` is accepted as an alias. Keys the
core does not interpret are preserved on round-trip.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from memoryflow.domain.exceptions import InvalidRatingError, SnapshotError
from memoryflow.domain.ids import generate_log_id
from memoryflow.domain.scheduling.ledger import ReviewLedger
from memoryflow.domain.scheduling.models import (
    LearningItem,
    LifecycleStatus,
    Rating,
    ReviewLogEntry,
    SchedulingState,
    TransitionResult,
)

logger = logging.getLogger(__name__)


class WireStateAfter(BaseModel):
    model_config = ConfigDict(extra="allow")

    s: float
    d: float
    interval: int


class WireLog(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(default_factory=generate_log_id)
    rating: int
    review_date: int = Field(alias="reviewDate")
    state_after: WireStateAfter | None = Field(default=None, alias="stateAfter")


class WireState(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    state: str = LifecycleStatus.NEW.value
    s: float = 0.0
    d: float = 0.0
    due: int = 0
    last_review: int = Field(default=0, alias="lastReview")


class WireItem(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    parent_id: str | None = Field(default=None, alias="parentId")
    title: str = ""
    children: list[str] = Field(default_factory=list)
    fsrs: WireState = Field(default_factory=WireState)
    logs: list[WireLog] = Field(
        default_factory=list,
        validation_alias=AliasChoices("logs", "reviewLog"),
        serialization_alias="logs",
    )


_snapshot_adapter = TypeAdapter(dict[str, WireItem])


def decode_snapshot(data: Mapping[str, Any]) -> dict[str, LearningItem]:
    """
    Build domain items from a stored snapshot mapping.

    Raises:
        SnapshotError: if the mapping does not describe a valid collection.
    """
    try:
        wire_items = _snapshot_adapter.validate_python(dict(data))
    except ValidationError as e:
        raise SnapshotError(f"Invalid snapshot: {e}") from e

    items: dict[str, LearningItem] = {}
    for key, wire in wire_items.items():
        if wire.id != key:
            logger.warning("Snapshot key %s holds item %s; using the key", key, wire.id)
        items[key] = _decode_item(key, wire)
    return items


def encode_snapshot(items: Mapping[str, LearningItem]) -> dict[str, Any]:
    """Serialize domain items to the stored snapshot mapping."""
    return {item_id: encode_item(item) for item_id, item in items.items()}


def encode_item(item: LearningItem) -> dict[str, Any]:
    wire = WireItem(
        id=item.id,
        parent_id=item.parent_id,
        title=item.title,
        children=list(item.children),
        fsrs=WireState(
            state=item.state.status.value,
            s=item.state.stability,
            d=item.state.difficulty,
            due=item.state.due,
            last_review=item.state.last_review,
        ),
        logs=[_encode_log(entry) for entry in item.ledger],
    )
    payload = wire.model_dump(by_alias=True, exclude_none=True)
    payload["parentId"] = item.parent_id  # null for the root, never omitted
    return {**item.extras, **payload}


def _encode_log(entry: ReviewLogEntry) -> WireLog:
    state_after = None
    if entry.state_after is not None:
        state_after = WireStateAfter(
            s=entry.state_after.stability,
            d=entry.state_after.difficulty,
            interval=entry.state_after.interval_days,
        )
    return WireLog(
        id=entry.id,
        rating=int(entry.rating),
        review_date=entry.review_timestamp,
        state_after=state_after,
    )


def _decode_item(item_id: str, wire: WireItem) -> LearningItem:
    try:
        status = LifecycleStatus(wire.fsrs.state)
    except ValueError:
        raise SnapshotError(f"Item {item_id}: unknown state {wire.fsrs.state!r}") from None

    entries = []
    for log in wire.logs:
        try:
            rating = Rating.parse(log.rating)
        except InvalidRatingError as e:
            raise SnapshotError(f"Item {item_id}, log {log.id}: {e}") from e
        state_after = None
        if log.state_after is not None:
            state_after = TransitionResult(
                stability=log.state_after.s,
                difficulty=log.state_after.d,
                interval_days=log.state_after.interval,
            )
        entries.append(
            ReviewLogEntry(
                id=log.id,
                rating=rating,
                review_timestamp=log.review_date,
                state_after=state_after,
            )
        )

    return LearningItem(
        id=item_id,
        parent_id=wire.parent_id,
        title=wire.title,
        state=SchedulingState(
            status=status,
            stability=wire.fsrs.s,
            difficulty=wire.fsrs.d,
            due=wire.fsrs.due,
            last_review=wire.fsrs.last_review,
        ),
        ledger=ReviewLedger.of(entries),
        children=tuple(wire.children),
        extras=dict(wire.model_extra or {}),
    )
