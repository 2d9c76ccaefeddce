"""
Snapshot stores: infrastructure adapters for the SnapshotStore port.
"""

import json
import logging
import os
from pathlib import Path

from memoryflow.application.tree import initial_collection
from memoryflow.domain.exceptions import SnapshotError
from memoryflow.domain.scheduling.models import LearningItem
from memoryflow.domain.scheduling.ports import SnapshotStore

from .codec import decode_snapshot, encode_snapshot

logger = logging.getLogger(__name__)


class JsonFileSnapshotStore(SnapshotStore):
    """
    Keeps the whole collection in a single JSON file.

    A missing file yields the seed collection (root only).
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> dict[str, LearningItem]:
        if not self.path.exists():
            logger.info("No data file at %s, starting with an empty tree", self.path)
            return initial_collection()

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise SnapshotError(f"Failed to read {self.path}: {e}") from e

        if not isinstance(raw, dict):
            raise SnapshotError(f"{self.path} does not contain an item mapping")

        items = decode_snapshot(raw)
        logger.debug("Loaded %d items from %s", len(items), self.path)
        return items

    def save(self, items: dict[str, LearningItem]) -> None:
        payload = json.dumps(encode_snapshot(items), ensure_ascii=False, indent=2)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise SnapshotError(f"Failed to write {self.path}: {e}") from e
        logger.debug("Saved %d items to %s", len(items), self.path)


class InMemorySnapshotStore(SnapshotStore):
    """Holds the collection in memory. Useful for tests and embedding."""

    def __init__(self, items: dict[str, LearningItem] | None = None):
        self._items = dict(items) if items is not None else initial_collection()

    def load(self) -> dict[str, LearningItem]:
        return dict(self._items)

    def save(self, items: dict[str, LearningItem]) -> None:
        self._items = dict(items)
