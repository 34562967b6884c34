import pytest

from exam_api.models.attempts import Attempt, AttemptItem, AttemptModuleTimer, AttemptSession
from exam_api.models.candidate import Ticket
from exam_api.models.enums import AttemptSessionStatus, AttemptStatus, ExamVersionStatus, TicketStatus
from exam_api.models.scores import AttemptScore
from exam_api.models.exam import ExamVersionModule, ExamVersionQuestion
from exam_api.services.answer_service import record_answer
from exam_api.services import attempt_service
from exam_api.services.attempt_service import start_attempt, submit_attempt
from exam_api.services.errors import DataIntegrityError, InvalidStateError, UnauthorizedError

from conftest import seed_exam


def test_start_denormalizes_items_and_timers(db):
    exam = seed_exam(db, modules=(("VERBAL", 120, (1, 2)), ("NUMERIC", 300, (3,))))

    attempt = start_attempt(db, exam.ticket_code, exam.pin)

    assert attempt.status == AttemptStatus.IN_PROGRESS
    assert attempt.started_at is not None
    items = db.query(AttemptItem).filter(AttemptItem.attempt_id == attempt.id).all()
    assert sorted(i.points for i in items) == [1, 2, 3]

    timers = {
        t.module_id: t.remaining_seconds
        for t in db.query(AttemptModuleTimer).filter(AttemptModuleTimer.attempt_id == attempt.id)
    }
    assert timers == {exam.module_ids[0]: 120, exam.module_ids[1]: 300}

    sessions = db.query(AttemptSession).filter(AttemptSession.attempt_id == attempt.id).all()
    assert [s.status for s in sessions] == [AttemptSessionStatus.ACTIVE]


def test_start_rejects_wrong_pin(db, exam):
    with pytest.raises(UnauthorizedError):
        start_attempt(db, exam.ticket_code, "9999")


def test_second_start_for_same_ticket_is_rejected(db, exam):
    start_attempt(db, exam.ticket_code, exam.pin)
    db.commit()

    # 진행 중 attempt 가 있으면 로그인 단계에서 거부된다
    with pytest.raises(UnauthorizedError):
        start_attempt(db, exam.ticket_code, exam.pin)

    assert db.query(Attempt).count() == 1


def test_start_after_abort_reports_invalid_state(db, exam):
    attempt = start_attempt(db, exam.ticket_code, exam.pin)
    attempt.status = AttemptStatus.ABORTED
    db.commit()

    with pytest.raises(InvalidStateError):
        start_attempt(db, exam.ticket_code, exam.pin)


def test_start_requires_published_version(db):
    exam = seed_exam(db, status=ExamVersionStatus.DRAFT)

    with pytest.raises(DataIntegrityError) as exc:
        start_attempt(db, exam.ticket_code, exam.pin)

    assert exc.value.code == "exam_version_not_published"
    assert db.query(Attempt).count() == 0


def test_start_rejects_version_without_questions(db, exam):
    db.query(ExamVersionQuestion).delete()
    db.commit()

    with pytest.raises(DataIntegrityError) as exc:
        start_attempt(db, exam.ticket_code, exam.pin)

    assert exc.value.code == "exam_version_empty"


def test_submit_scores_in_same_transaction_and_uses_ticket(db, exam):
    attempt = start_attempt(db, exam.ticket_code, exam.pin)
    item = db.query(AttemptItem).filter(AttemptItem.attempt_id == attempt.id).one()
    record_answer(db, attempt.id, item.id, exam.questions[0].correct_option_id)

    submitted = submit_attempt(db, exam.ticket_code, exam.pin)

    assert submitted.status == AttemptStatus.SCORED
    assert submitted.submitted_at is not None
    score = db.get(AttemptScore, attempt.id)
    assert (score.raw_score, score.max_score) == (1, 1)
    assert db.get(Ticket, exam.ticket_id).status == TicketStatus.USED


def test_submit_of_locked_attempt_is_invalid_state(db, exam):
    attempt = start_attempt(db, exam.ticket_code, exam.pin)
    attempt.status = AttemptStatus.LOCKED
    db.commit()

    with pytest.raises(InvalidStateError):
        submit_attempt(db, exam.ticket_code, exam.pin)
    db.rollback()

    assert db.get(Attempt, attempt.id).status == AttemptStatus.LOCKED
    assert db.get(Ticket, exam.ticket_id).status == TicketStatus.ACTIVE
    assert db.get(AttemptScore, attempt.id) is None


def test_concurrent_start_losing_the_race_leaves_nothing_behind(db, exam, monkeypatch):
    first = start_attempt(db, exam.ticket_code, exam.pin)
    first.status = AttemptStatus.ABORTED  # 로그인 검사는 통과하는 상태
    db.commit()

    def counts():
        return tuple(
            db.query(model).count() for model in (Attempt, AttemptSession, AttemptItem, AttemptModuleTimer)
        )

    before = counts()

    # 다른 요청이 아직 커밋하지 않아 사전 확인에서는 보이지 않은 상황
    monkeypatch.setattr(attempt_service, "_attempt_exists", lambda db, ticket_id: False)

    with pytest.raises(InvalidStateError):
        start_attempt(db, exam.ticket_code, exam.pin)
    db.rollback()

    assert counts() == before
    assert [a.status for a in db.query(Attempt)] == [AttemptStatus.ABORTED]


def test_start_rejects_question_in_module_outside_version(db):
    exam = seed_exam(db, modules=(("VERBAL", 120, (1,)), ("NUMERIC", 60, (1,))))
    db.query(ExamVersionModule).filter(ExamVersionModule.module_id == exam.module_ids[1]).delete()
    db.commit()

    with pytest.raises(DataIntegrityError) as exc:
        start_attempt(db, exam.ticket_code, exam.pin)

    assert exc.value.code == "exam_version_inconsistent"
    assert db.query(Attempt).count() == 0
