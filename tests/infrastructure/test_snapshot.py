import json
from dataclasses import replace

import pytest

from memoryflow.application import tree
from memoryflow.application.review_service import review_item
from memoryflow.domain.constants import ROOT_ID
from memoryflow.domain.exceptions import SnapshotError
from memoryflow.domain.scheduling.models import LifecycleStatus, Rating
from memoryflow.infrastructure.snapshot.codec import decode_snapshot, encode_snapshot
from memoryflow.infrastructure.snapshot.stores import (
    InMemorySnapshotStore,
    JsonFileSnapshotStore,
)

LEGACY_SNAPSHOT = {
    "root": {
        "id": "root",
        "parentId": None,
        "title": "Root",
        "children": ["t1"],
        "fsrs": {"state": "suspended", "s": 0, "d": 0, "due": 0, "lastReview": 0},
        "isExpanded": True,
    },
    "t1": {
        "id": "t1",
        "parentId": "root",
        "title": "Topic",
        "children": [],
        "fsrs": {"state": "review", "s": 3.173, "d": 7.1961, "due": 1705579200000, "lastReview": 1705320000000},
        "reviewLog": [
            {
                "id": "l1",
                "rating": 3,
                "reviewDate": 1705320000000,
                "stateAfter": {"s": 3.173, "d": 7.1961, "interval": 3},
            }
        ],
        "color": "#ffcc00",
    },
}


class TestCodec:
    def test_decode(self):
        items = decode_snapshot(LEGACY_SNAPSHOT)

        topic = items["t1"]
        assert topic.parent_id == ROOT_ID
        assert topic.state.status == LifecycleStatus.REVIEW
        assert topic.state.last_review == 1705320000000
        (entry,) = topic.ledger
        assert entry.id == "l1"
        assert entry.rating is Rating.GOOD
        assert entry.state_after.interval_days == 3

        assert items[ROOT_ID].is_root
        assert items[ROOT_ID].children == ("t1",)

    def test_missing_logs_defaults_to_empty(self):
        data = {"root": {"id": "root", "parentId": None, "title": "Root"}}
        items = decode_snapshot(data)

        assert items[ROOT_ID].ledger.is_empty
        assert items[ROOT_ID].state.status == LifecycleStatus.NEW

    def test_unknown_keys_survive_round_trip(self):
        encoded = encode_snapshot(decode_snapshot(LEGACY_SNAPSHOT))

        assert encoded["root"]["isExpanded"] is True
        assert encoded["t1"]["color"] == "#ffcc00"
        assert encoded["root"]["parentId"] is None
        assert encoded["t1"]["logs"][0]["reviewDate"] == 1705320000000
        assert encoded["t1"]["logs"][0]["stateAfter"] == {"s": 3.173, "d": 7.1961, "interval": 3}
        assert encoded["t1"]["fsrs"]["lastReview"] == 1705320000000
        assert "reviewLog" not in encoded["t1"]

    def test_encode_omits_missing_state_after(self, make_item, t0):
        item = make_item(status=LifecycleStatus.NEW, due=t0)
        logged = item.ledger.append(Rating.HARD, t0, entry_id="x")[0]
        encoded = encode_snapshot({"item": replace(item, ledger=logged)})

        assert encoded["item"]["logs"] == [{"id": "x", "rating": 2, "reviewDate": t0}]

    @pytest.mark.parametrize(
        "broken",
        [
            {"t1": {"title": "no id"}},
            {"t1": {"id": "t1", "fsrs": {"state": "archived"}}},
            {"t1": {"id": "t1", "logs": [{"rating": 9, "reviewDate": 1}]}},
            {"t1": {"id": "t1", "logs": [{"rating": 3}]}},
        ],
    )
    def test_invalid_snapshot(self, broken):
        with pytest.raises(SnapshotError):
            decode_snapshot(broken)


class TestJsonFileStore:
    def test_missing_file_gives_seed_collection(self, tmp_path):
        store = JsonFileSnapshotStore(tmp_path / "data.json")
        assert list(store.load()) == [ROOT_ID]

    def test_save_and_load(self, tmp_path, t0):
        path = tmp_path / "nested" / "data.json"
        store = JsonFileSnapshotStore(path)

        items, item_id = tree.add_item(store.load(), ROOT_ID, "Topic", "plan", t0)
        items = tree.with_item(items, review_item(items[item_id], Rating.GOOD, t0))
        store.save(items)

        assert path.exists()
        assert not path.with_name("data.json.tmp").exists()
        assert store.load() == items

    def test_reads_legacy_file(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps(LEGACY_SNAPSHOT), encoding="utf-8")

        items = JsonFileSnapshotStore(path).load()
        assert items["t1"].title == "Topic"

    @pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
    def test_corrupt_file(self, tmp_path, content):
        path = tmp_path / "data.json"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(SnapshotError):
            JsonFileSnapshotStore(path).load()


def test_in_memory_store_isolates_callers():
    store = InMemorySnapshotStore()
    items = store.load()
    items["junk"] = items[ROOT_ID]

    assert "junk" not in store.load()
