from datetime import datetime, timedelta, timezone

from exam_api.models.enums import TelemetryEventType as E
from exam_api.services.telemetry_metrics import (
    IDLE_TIMEOUT_SECONDS,
    TelemetryEvent,
    compute_attempt_item_metrics,
)

BASE = datetime(2030, 1, 1, tzinfo=timezone.utc)


def at(event_type, seconds):
    return TelemetryEvent(event_type=event_type, server_time=BASE + timedelta(seconds=seconds))


def test_view_hide_pairs_accumulate_observed_seconds():
    metrics = compute_attempt_item_metrics([
        at(E.VIEW, 0),
        at(E.HIDE, 10),
        at(E.VIEW, 20),
        at(E.HIDE, 30),
    ])

    assert metrics.view_count == 2
    assert metrics.observed_seconds == 20


def test_overlapping_activity_windows_are_merged():
    metrics = compute_attempt_item_metrics([
        at(E.ANSWER_SELECT, 0),
        at(E.ANSWER_SELECT, 5),
    ])

    assert metrics.answer_change_count == 2
    assert metrics.active_seconds == 20


def test_idle_start_truncates_open_window():
    metrics = compute_attempt_item_metrics([
        at(E.ANSWER_SELECT, 0),
        at(E.IDLE_START, 5),
        at(E.IDLE_END, 20),
    ])

    assert metrics.answer_change_count == 1
    # [0,5) + [20,35)
    assert metrics.active_seconds == 20


def test_disjoint_windows_are_summed():
    metrics = compute_attempt_item_metrics([
        at(E.ANSWER_SELECT, 0),
        at(E.ANSWER_SELECT, 100),
    ])

    assert metrics.active_seconds == 2 * IDLE_TIMEOUT_SECONDS


def test_trailing_view_is_closed_at_last_event_not_now():
    events = [
        at(E.VIEW, 0),
        at(E.ANSWER_SELECT, 12),
        at(E.HEARTBEAT, 40),
    ]

    first = compute_attempt_item_metrics(events)
    second = compute_attempt_item_metrics(events)

    assert first.observed_seconds == 40
    assert first == second


def test_events_are_ordered_by_server_time():
    shuffled = [
        at(E.HIDE, 10),
        at(E.ANSWER_SELECT, 5),
        at(E.VIEW, 0),
    ]

    metrics = compute_attempt_item_metrics(shuffled)

    assert metrics.observed_seconds == 10
    assert metrics.view_count == 1
    assert metrics.active_seconds == IDLE_TIMEOUT_SECONDS


def test_repeated_view_does_not_restart_open_interval():
    metrics = compute_attempt_item_metrics([
        at(E.VIEW, 0),
        at(E.VIEW, 5),
        at(E.HIDE, 9),
    ])

    assert metrics.view_count == 2
    assert metrics.observed_seconds == 9


def test_visibility_and_heartbeat_events_are_ignored():
    metrics = compute_attempt_item_metrics([
        at(E.VISIBILITY_HIDDEN, 0),
        at(E.VISIBILITY_VISIBLE, 3),
        at(E.HEARTBEAT, 8),
    ])

    assert metrics.to_dict() == {
        "observed_seconds": 0,
        "active_seconds": 0,
        "view_count": 0,
        "answer_change_count": 0,
    }


def test_sub_second_intervals_are_floored():
    metrics = compute_attempt_item_metrics([
        TelemetryEvent(E.VIEW, BASE),
        TelemetryEvent(E.HIDE, BASE + timedelta(milliseconds=2900)),
    ])

    assert metrics.observed_seconds == 2


def test_empty_event_list():
    metrics = compute_attempt_item_metrics([])

    assert metrics.observed_seconds == 0
    assert metrics.active_seconds == 0
