import logging
from datetime import timezone

import pytest

from memoryflow.application.scheduling import projection
from memoryflow.application.scheduling.projection import (
    day_key,
    generate_review_schedule,
    project,
)
from memoryflow.application.tree import initial_collection
from memoryflow.domain.constants import DAY_MS
from memoryflow.domain.scheduling.models import EventKind, LifecycleStatus


class TestProject:
    def test_new_item_due_now(self, make_item, t0):
        item = make_item(status=LifecycleStatus.NEW, due=t0)
        events = project(item, t0 + 10 * DAY_MS, t0)

        assert events[0].kind == EventKind.CONFIRMED
        assert events[0].timestamp == t0
        assert events[0].interval_days is None

        # Simulated first Good review: interval from the initial table (3 days)
        assert events[1].kind == EventKind.PROJECTED
        assert events[1].timestamp == t0 + 3 * DAY_MS
        assert events[1].interval_days == 3

        # Next simulated interval is well beyond a 10-day horizon
        assert len(events) == 2

    def test_overdue_item_is_pulled_to_now(self, make_item, t0):
        item = make_item(stability=5.0, difficulty=5.0, due=t0 - 5 * DAY_MS, last_review=t0 - 10 * DAY_MS)
        events = project(item, t0 + 2 * DAY_MS, t0)

        assert events[0].kind == EventKind.CONFIRMED
        assert events[0].timestamp == t0

    def test_events_are_chronological(self, make_item, t0):
        item = make_item(status=LifecycleStatus.NEW, due=t0)
        events = project(item, t0 + 400 * DAY_MS, t0)

        timestamps = [e.timestamp for e in events]
        assert timestamps == sorted(timestamps)
        assert all(e.kind == EventKind.PROJECTED for e in events[1:])
        assert all(e.timestamp <= t0 + 400 * DAY_MS for e in events)

    def test_confirmed_beyond_horizon(self, make_item, t0):
        item = make_item(stability=40.0, difficulty=5.0, due=t0 + 40 * DAY_MS, last_review=t0)
        assert project(item, t0 + 14 * DAY_MS, t0) == []

    def test_horizon_not_after_now(self, make_item, t0):
        item = make_item(status=LifecycleStatus.NEW, due=t0 - DAY_MS)
        assert project(item, t0, t0) == []
        assert project(item, t0 - DAY_MS, t0) == []

    def test_suspended_and_root_excluded(self, make_item, t0):
        suspended = make_item(status=LifecycleStatus.SUSPENDED, due=t0)
        root = initial_collection()["root"]

        assert project(suspended, t0 + 30 * DAY_MS, t0) == []
        assert project(root, t0 + 30 * DAY_MS, t0) == []

    def test_does_not_modify_item(self, make_item, t0):
        item = make_item(stability=5.0, difficulty=5.0, due=t0, last_review=t0 - 5 * DAY_MS)
        before = item.state
        project(item, t0 + 100 * DAY_MS, t0)
        assert item.state == before

    def test_step_cap_logs_warning(self, make_item, t0, monkeypatch, caplog):
        monkeypatch.setattr(projection, "PROJECTION_MAX_STEPS", 2)
        item = make_item(status=LifecycleStatus.NEW, due=t0)

        with caplog.at_level(logging.WARNING):
            events = project(item, t0 + 100 * 365 * DAY_MS, t0)

        assert len(events) == 3  # confirmed + 2 projected
        assert "step cap" in caplog.text


class TestCalendar:
    def test_grouping_and_ordering(self, make_item, t0):
        zulu = make_item(
            "z",
            title="Zulu",
            stability=5.0,
            difficulty=5.0,
            due=t0 + 3 * DAY_MS,
            last_review=t0 - 2 * DAY_MS,
        )
        aardvark = make_item("a", title="Aardvark", status=LifecycleStatus.NEW, due=t0)
        alpha = make_item("al", title="Alpha", status=LifecycleStatus.NEW, due=t0)
        beta = make_item("b", title="beta", status=LifecycleStatus.NEW, due=t0)

        schedule = generate_review_schedule(
            [zulu, beta, aardvark, alpha], horizon_days=7, now=t0, tz=timezone.utc
        )

        assert list(schedule) == sorted(schedule)

        today = schedule["2024-01-15"]
        assert [e.title for e in today] == ["Aardvark", "Alpha", "beta"]

        day3 = schedule["2024-01-18"]
        assert day3[0].title == "Zulu"
        assert day3[0].kind == EventKind.CONFIRMED
        assert [e.kind for e in day3[1:]] == [EventKind.PROJECTED] * 3
        assert [e.title for e in day3[1:]] == ["Aardvark", "Alpha", "beta"]

    def test_zero_horizon_is_empty(self, make_item, t0):
        item = make_item(status=LifecycleStatus.NEW, due=t0)
        assert generate_review_schedule([item], horizon_days=0, now=t0) == {}

    def test_empty_collection(self, t0):
        assert generate_review_schedule(initial_collection().values(), 14, t0) == {}


@pytest.mark.parametrize(
    "offset_hours,expected",
    [(0, "2024-01-15"), (11, "2024-01-15"), (12, "2024-01-16")],
)
def test_day_key(t0, offset_hours, expected):
    assert day_key(t0 + offset_hours * 3600 * 1000, timezone.utc) == expected
