import pytest

from exam_api.models.attempts import AttemptAnswer, AttemptItem
from exam_api.models.enums import AttemptStatus
from exam_api.services.answer_service import record_answer
from exam_api.services.attempt_service import start_attempt
from exam_api.services.errors import DataIntegrityError, InvalidStateError, NotFoundError

from conftest import seed_exam


@pytest.fixture
def started(db, exam):
    attempt = start_attempt(db, exam.ticket_code, exam.pin)
    item = db.query(AttemptItem).filter(AttemptItem.attempt_id == attempt.id).one()
    db.commit()
    return attempt, item


def test_last_write_wins_and_unset_clears_answered_at(db, exam, started):
    attempt, item = started
    q = exam.questions[0]

    first = record_answer(db, attempt.id, item.id, q.correct_option_id)
    assert first.answered_at is not None

    record_answer(db, attempt.id, item.id, q.wrong_option_id)
    cleared = record_answer(db, attempt.id, item.id, None)

    assert cleared.selected_option_id is None
    assert cleared.answered_at is None
    assert db.query(AttemptAnswer).filter(AttemptAnswer.attempt_item_id == item.id).count() == 1


def test_option_from_another_question_is_rejected(db, exam, started):
    attempt, item = started
    other = seed_exam(db, modules=(("LOGIC", 60, (1,)),), ticket_code="T-0002")

    with pytest.raises(DataIntegrityError) as exc:
        record_answer(db, attempt.id, item.id, other.questions[0].correct_option_id)

    assert exc.value.code == "invalid_option"
    assert db.query(AttemptAnswer).count() == 0


def test_item_of_another_attempt_is_rejected(db, exam, started):
    attempt, _ = started
    other = seed_exam(db, modules=(("LOGIC", 60, (1,)),), ticket_code="T-0002")
    other_attempt = start_attempt(db, other.ticket_code, other.pin)
    other_item = db.query(AttemptItem).filter(AttemptItem.attempt_id == other_attempt.id).one()

    with pytest.raises(NotFoundError) as exc:
        record_answer(db, attempt.id, other_item.id, None)

    assert exc.value.code == "attempt_item_not_found"


def test_answers_are_rejected_while_locked(db, exam, started):
    attempt, item = started
    attempt.status = AttemptStatus.LOCKED
    db.commit()

    with pytest.raises(InvalidStateError):
        record_answer(db, attempt.id, item.id, exam.questions[0].correct_option_id)
