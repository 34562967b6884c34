# exam_api/services/answer_service.py
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from exam_api.models.attempts import AttemptAnswer, AttemptItem
from exam_api.models.enums import AttemptStatus
from exam_api.models.question import QuestionOption
from exam_api.services.attempt_state import load_attempt_for_update, require_status
from exam_api.services.candidate_auth import authorize_candidate_access
from exam_api.services.errors import DataIntegrityError, NotFoundError

logger = logging.getLogger(__name__)


def record_answer(
    db: Session,
    attempt_id: int,
    attempt_item_id: int,
    selected_option_id: Optional[int],
) -> AttemptAnswer:
    """
    답안 upsert (attempt_item_id 기준, 마지막 값이 이긴다).
    - 보기를 고르면 answered_at 갱신, 선택 해제(None)면 answered_at 도 None
    - 이력은 남기지 않는다. 채점에는 최종 선택만 필요
    """
    attempt = load_attempt_for_update(db, attempt_id=attempt_id)
    require_status(attempt, AttemptStatus.IN_PROGRESS)

    item = db.get(AttemptItem, attempt_item_id)
    if item is None or item.attempt_id != attempt.id:
        raise NotFoundError("attempt_item_not_found")

    if selected_option_id is not None:
        option = (
            db.query(QuestionOption.id)
            .filter(
                QuestionOption.id == selected_option_id,
                QuestionOption.question_id == item.question_id,
            )
            .first()
        )
        if option is None:
            raise DataIntegrityError("invalid_option")

    answered_at = datetime.now(timezone.utc) if selected_option_id is not None else None

    answer = (
        db.query(AttemptAnswer)
        .filter(AttemptAnswer.attempt_item_id == item.id)
        .with_for_update()
        .first()
    )
    if answer is None:
        answer = AttemptAnswer(attempt_item_id=item.id)
        db.add(answer)

    answer.selected_option_id = selected_option_id
    answer.answered_at = answered_at
    db.flush()

    logger.debug(
        "[ANSWER] attempt_id=%s item_id=%s option=%s", attempt.id, item.id, selected_option_id,
    )
    return answer


def submit_answer(
    db: Session,
    ticket_code: str,
    pin: str,
    attempt_item_id: int,
    selected_option_id: Optional[int],
) -> AttemptAnswer:
    auth = authorize_candidate_access(db, ticket_code, pin)
    attempt = load_attempt_for_update(db, ticket_id=auth.ticket_id)
    return record_answer(db, attempt.id, attempt_item_id, selected_option_id)
