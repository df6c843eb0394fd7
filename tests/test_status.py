"""Tests for sleep/feed/diaper status derivation and the per-baby tracker."""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from babytracker.schemas.activity import parse_activities
from babytracker.services.status import StatusTracker, SubjectStore, derive_status

from tracker_fakes import diaper_log, feed_log, note_log, sleep_log


def _utc(text):
    return datetime.fromisoformat(text).replace(tzinfo=timezone.utc)


def test_derive_status_picks_ongoing_and_latest_ended_sleep():
    records = parse_activities(
        [
            sleep_log("s1", "2024-05-01T01:00:00Z", "2024-05-01T03:00:00Z", 120),
            sleep_log("s2", "2024-05-01T09:00:00Z"),
            sleep_log("s3", "2024-05-01T05:00:00Z", "2024-05-01T06:30:00Z", 90),
            note_log("n1", "2024-05-01T07:00:00Z"),
        ]
    )

    status = derive_status(records)

    assert status.ongoing_sleep.id == "s2"
    assert status.last_ended_sleep.id == "s3"
    assert status.last_ended_sleep.end_time == _utc("2024-05-01T06:30:00")


def test_derive_status_latest_feed_and_diaper_regardless_of_order():
    records = parse_activities(
        [
            feed_log("f1", "2024-05-01T08:00:00Z"),
            diaper_log("d1", "2024-05-01T04:00:00Z"),
            feed_log("f2", "2024-05-01T10:15:00Z"),
            diaper_log("d2", "2024-05-01T09:45:00Z"),
            feed_log("f3", "2024-05-01T06:00:00Z"),
        ]
    )

    status = derive_status(records)

    assert status.last_feed_time == _utc("2024-05-01T10:15:00")
    assert status.last_diaper_time == _utc("2024-05-01T09:45:00")
    assert status.ongoing_sleep is None
    assert status.last_ended_sleep is None


def test_derive_status_empty_input():
    status = derive_status([])

    assert status.ongoing_sleep is None
    assert status.last_ended_sleep is None
    assert status.last_feed_time is None
    assert status.last_diaper_time is None


def test_derive_status_keeps_latest_started_when_backend_returns_two_ongoing():
    records = parse_activities(
        [
            sleep_log("old", "2024-05-01T01:00:00Z"),
            sleep_log("new", "2024-05-01T04:00:00Z"),
        ]
    )

    assert derive_status(records).ongoing_sleep.id == "new"


def test_derive_status_ties_keep_first_record_seen():
    records = parse_activities(
        [
            sleep_log("ended-a", "2024-05-01T01:00:00Z", "2024-05-01T03:00:00Z", 120),
            sleep_log("ended-b", "2024-05-01T02:00:00Z", "2024-05-01T03:00:00Z", 60),
            sleep_log("ongoing-a", "2024-05-01T05:00:00Z"),
            sleep_log("ongoing-b", "2024-05-01T05:00:00Z"),
        ]
    )

    status = derive_status(records)

    assert status.last_ended_sleep.id == "ended-a"
    assert status.ongoing_sleep.id == "ongoing-a"


def test_tracker_marks_baby_sleeping_then_awake():
    tracker = StatusTracker()
    asleep = parse_activities([sleep_log("s1", "2024-05-01T09:00:00Z")])
    tracker.apply("baby-1", tracker.begin_request("baby-1"), asleep)

    view = tracker.view("baby-1")
    assert view.sleeping is True
    assert view.sleep_start == _utc("2024-05-01T09:00:00")

    woke = parse_activities([sleep_log("s1", "2024-05-01T09:00:00Z", "2024-05-01T10:00:00Z", 60)])
    tracker.apply("baby-1", tracker.begin_request("baby-1"), woke)

    view = tracker.view("baby-1")
    assert view.sleeping is False
    assert view.sleep_start is None
    assert view.last_sleep_end == _utc("2024-05-01T10:00:00")
    assert "baby-1" not in tracker.sleeping


def test_tracker_empty_fetch_keeps_previous_feed_and_diaper():
    tracker = StatusTracker()
    tracker.apply(
        "baby-1",
        tracker.begin_request("baby-1"),
        parse_activities([feed_log("f1", "2024-05-01T08:00:00Z"), diaper_log("d1", "2024-05-01T07:00:00Z")]),
    )

    tracker.apply("baby-1", tracker.begin_request("baby-1"), [])

    view = tracker.view("baby-1")
    assert view.last_feed == _utc("2024-05-01T08:00:00")
    assert view.last_diaper == _utc("2024-05-01T07:00:00")
    assert view.activities == []


def test_tracker_drops_stale_responses():
    tracker = StatusTracker()
    slow = tracker.begin_request("baby-1")
    fast = tracker.begin_request("baby-1")

    fresh = parse_activities([feed_log("f2", "2024-05-01T12:00:00Z")])
    stale = parse_activities([feed_log("f1", "2024-05-01T08:00:00Z")])

    assert tracker.apply("baby-1", fast, fresh) is True
    assert tracker.apply("baby-1", slow, stale) is False
    assert tracker.view("baby-1").last_feed == _utc("2024-05-01T12:00:00")


def test_tracker_keeps_subjects_separate():
    tracker = StatusTracker()
    tracker.apply(
        "baby-1",
        tracker.begin_request("baby-1"),
        parse_activities([sleep_log("s1", "2024-05-01T09:00:00Z")]),
    )
    tracker.apply(
        "baby-2",
        tracker.begin_request("baby-2"),
        parse_activities([feed_log("f1", "2024-05-01T08:00:00Z", baby_id="baby-2")]),
    )

    assert tracker.is_sleeping("baby-1")
    assert not tracker.is_sleeping("baby-2")
    assert tracker.view("baby-2").last_feed == _utc("2024-05-01T08:00:00")
    assert tracker.view("baby-1").last_feed is None


def test_toggle_sleep_flips_membership():
    tracker = StatusTracker()

    assert tracker.toggle_sleep("baby-1") is True
    assert tracker.toggle_sleep("baby-1") is False
    assert tracker.sleeping == set()


def test_subject_store_insert_and_remove():
    store = SubjectStore()
    store.set("a", 1)

    assert "a" in store
    assert store.get("a") == 1
    store.remove("a")
    store.remove("missing")
    assert store.get("a") is None
    assert len(store) == 0
