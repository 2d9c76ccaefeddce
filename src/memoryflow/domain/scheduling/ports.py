"""
Ports (interfaces) for snapshot persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import LearningItem


class SnapshotStore(ABC):
    """
    Port for loading and saving the full item collection.

    Implementations:
        - JsonFileSnapshotStore: Reads/writes a JSON file on disk.
        - InMemorySnapshotStore: Keeps the collection in memory (tests, embedding).
    """

    @abstractmethod
    def load(self) -> dict[str, LearningItem]:
        """
        Load the full collection keyed by item id.

        The returned collection is expected to satisfy the tree invariants
        (single root, no cycles).
        """
        pass

    @abstractmethod
    def save(self, items: dict[str, LearningItem]) -> None:
        """
        Persist the full collection, replacing whatever was stored.
        """
        pass
