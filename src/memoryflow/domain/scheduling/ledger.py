"""
Review log ledger.

The ledger is the source of truth for an item's history. It keeps
entries in insertion order, which is not necessarily chronological:
backdated and future-dated entries are allowed.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from memoryflow.domain.exceptions import LogEntryNotFoundError
from memoryflow.domain.ids import generate_log_id
from memoryflow.domain.scheduling.models import Rating, ReviewLogEntry, TransitionResult


@dataclass(frozen=True)
class ReviewLedger:
    """Immutable, insertion-ordered collection of review log entries."""

    entries: tuple[ReviewLogEntry, ...] = ()

    @classmethod
    def of(cls, entries: Iterable[ReviewLogEntry]) -> ReviewLedger:
        return cls(tuple(entries))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ReviewLogEntry]:
        return iter(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def append(
        self,
        rating: Rating | int,
        timestamp: int,
        entry_id: str | None = None,
        state_after: TransitionResult | None = None,
    ) -> tuple[ReviewLedger, ReviewLogEntry]:
        """
        Add an entry at any point in time.

        Returns:
            (new ledger, the entry that was added)
        """
        entry = ReviewLogEntry(
            id=entry_id or generate_log_id(),
            rating=Rating.parse(rating),
            review_timestamp=int(timestamp),
            state_after=state_after,
        )
        return ReviewLedger(self.entries + (entry,)), entry

    def remove(self, entry_id: str) -> ReviewLedger:
        """
        Drop one entry by id.

        Raises:
            LogEntryNotFoundError: if no entry has this id.
        """
        remaining = tuple(e for e in self.entries if e.id != entry_id)
        if len(remaining) == len(self.entries):
            raise LogEntryNotFoundError(entry_id)
        return ReviewLedger(remaining)

    def sorted_entries(self) -> list[ReviewLogEntry]:
        """Entries ascending by timestamp; ties keep insertion order."""
        return sorted(self.entries, key=lambda e: e.review_timestamp)
