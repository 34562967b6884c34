from datetime import datetime, timedelta, timezone

import pytest

from exam_api.models.attempts import AttemptItem
from exam_api.models.enums import AttemptStatus, TelemetryEventType
from exam_api.models.telemetry import AttemptItemEvent, AttemptItemMetric
from exam_api.services import telemetry_service
from exam_api.services.answer_service import record_answer
from exam_api.services.attempt_service import start_attempt
from exam_api.services.errors import InvalidStateError, NotFoundError
from exam_api.services.telemetry_service import record_telemetry

T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def started(db, exam):
    attempt = start_attempt(db, exam.ticket_code, exam.pin)
    item = db.query(AttemptItem).filter(AttemptItem.attempt_id == attempt.id).one()
    db.commit()
    return attempt, item


@pytest.fixture
def clock(monkeypatch):
    state = {"now": T0}
    monkeypatch.setattr(telemetry_service, "server_now", lambda: state["now"])

    def advance(seconds):
        state["now"] = state["now"] + timedelta(seconds=seconds)

    return advance


def test_item_events_update_stored_metrics(db, started, clock):
    attempt, item = started

    record_telemetry(db, attempt.id, TelemetryEventType.VIEW, item.id)
    clock(3)
    record_telemetry(db, attempt.id, TelemetryEventType.ANSWER_SELECT, item.id)
    clock(17)
    item_id, metrics = record_telemetry(db, attempt.id, TelemetryEventType.HIDE, item.id)

    assert item_id == item.id
    assert metrics.observed_seconds == 20
    assert metrics.active_seconds == 15
    assert metrics.view_count == 1
    assert metrics.answer_change_count == 1

    stored = db.get(AttemptItemMetric, item.id)
    assert stored.observed_seconds == 20
    assert stored.active_seconds == 15
    assert db.query(AttemptItemMetric).count() == 1


def test_attempt_level_event_is_stored_without_metrics(db, started, clock):
    attempt, _ = started

    item_id, metrics = record_telemetry(
        db, attempt.id, TelemetryEventType.HEARTBEAT, metadata={"battery": 0.4},
    )

    assert (item_id, metrics) == (None, None)
    event = db.query(AttemptItemEvent).one()
    assert event.attempt_item_id is None
    assert event.metadata_json == {"battery": 0.4}
    assert db.query(AttemptItemMetric).count() == 0


def test_unknown_item_is_rejected(db, started, clock):
    attempt, _ = started

    with pytest.raises(NotFoundError):
        record_telemetry(db, attempt.id, TelemetryEventType.VIEW, 98765)


def test_events_after_submission_are_rejected(db, started, clock):
    attempt, item = started
    attempt.status = AttemptStatus.SUBMITTED
    db.commit()

    with pytest.raises(InvalidStateError):
        record_telemetry(db, attempt.id, TelemetryEventType.VIEW, item.id)


def _attempt_selects(statements):
    return [sql for sql in statements if "FROM attempts" in sql]


def test_telemetry_reads_attempt_without_row_lock(db, started, clock, postgres_sql):
    attempt, item = started

    record_telemetry(db, attempt.id, TelemetryEventType.VIEW, item.id)

    attempt_reads = _attempt_selects(postgres_sql)
    assert attempt_reads
    assert not any("FOR UPDATE" in sql for sql in attempt_reads)


def test_answers_still_lock_the_attempt_row(db, exam, started, postgres_sql):
    attempt, item = started

    record_answer(db, attempt.id, item.id, exam.questions[0].correct_option_id)

    assert any("FOR UPDATE" in sql for sql in _attempt_selects(postgres_sql))
