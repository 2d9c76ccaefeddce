from memoryflow.application.scheduling.due_selector import is_due, select_due
from memoryflow.application.tree import initial_collection
from memoryflow.domain.constants import DAY_MS
from memoryflow.domain.scheduling.models import LifecycleStatus


def test_selects_due_items_earliest_first(make_item, t0):
    items = [
        make_item("late", due=t0 - DAY_MS),
        make_item("future", due=t0 + DAY_MS),
        make_item("very_late", due=t0 - 5 * DAY_MS),
        make_item("exact", due=t0),
    ]

    queue = select_due(items, t0)
    assert [i.id for i in queue] == ["very_late", "late", "exact"]


def test_excludes_suspended_and_root(make_item, t0):
    items = [
        initial_collection()["root"],
        make_item("stored", status=LifecycleStatus.SUSPENDED, due=0),
        make_item("new", status=LifecycleStatus.NEW, due=t0),
    ]

    assert [i.id for i in select_due(items, t0)] == ["new"]


def test_ties_keep_input_order(make_item, t0):
    items = [make_item("b", due=t0), make_item("a", due=t0), make_item("c", due=t0)]
    assert [i.id for i in select_due(items, t0)] == ["b", "a", "c"]


def test_empty_when_nothing_due(make_item, t0):
    assert select_due([make_item(due=t0 + 1)], t0) == []
    assert select_due([], t0) == []


def test_is_due_boundary(make_item, t0):
    item = make_item(due=t0)
    assert is_due(item, t0)
    assert not is_due(item, t0 - 1)
