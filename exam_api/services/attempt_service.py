# exam_api/services/attempt_service.py
"""
응시 시작 / 제출 로직
- start_attempt: attempt 생성 + 문항/모듈 타이머 비정규화 + ACTIVE 세션 발급
- submit_attempt: SUBMITTED 전이 + 수험표 USED 처리 + 같은 트랜잭션에서 채점
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from exam_api.models.attempts import Attempt, AttemptItem, AttemptModuleTimer, AttemptSession
from exam_api.models.candidate import Ticket
from exam_api.models.enums import AttemptSessionStatus, AttemptStatus, ExamVersionStatus, TicketStatus
from exam_api.models.exam import ExamVersion, ExamVersionModule, ExamVersionQuestion
from exam_api.services.attempt_state import load_attempt_for_update, transition
from exam_api.services.audit_log import record_audit_log
from exam_api.services.candidate_auth import authorize_candidate, authorize_candidate_access
from exam_api.services.errors import DataIntegrityError, InvalidStateError
from exam_api.services.scoring_service import score_attempt

logger = logging.getLogger(__name__)


def _attempt_exists(db: Session, ticket_id: int) -> bool:
    return db.query(Attempt.id).filter(Attempt.ticket_id == ticket_id).first() is not None


def start_attempt(db: Session, ticket_code: str, pin: str) -> Attempt:
    auth = authorize_candidate(db, ticket_code, pin)

    version = db.get(ExamVersion, auth.exam_version_id)
    if version is None or version.status != ExamVersionStatus.PUBLISHED:
        raise DataIntegrityError("exam_version_not_published")

    # 같은 수험표로 이미 만들어진 attempt 가 있으면 시작 불가 (상태 무관)
    if _attempt_exists(db, auth.ticket_id):
        raise InvalidStateError(message="attempt already exists for ticket")

    version_questions = (
        db.query(ExamVersionQuestion)
        .filter(ExamVersionQuestion.exam_version_id == version.id)
        .order_by(ExamVersionQuestion.module_id, ExamVersionQuestion.position)
        .all()
    )
    version_modules = (
        db.query(ExamVersionModule)
        .filter(ExamVersionModule.exam_version_id == version.id)
        .order_by(ExamVersionModule.position)
        .all()
    )

    # 문항 또는 모듈이 없으면 채점할 수 없는 attempt 가 되므로 막는다
    if not version_questions or not version_modules:
        raise DataIntegrityError("exam_version_empty")

    module_ids = {m.module_id for m in version_modules}
    if any(q.module_id not in module_ids for q in version_questions):
        raise DataIntegrityError("exam_version_inconsistent")

    attempt = Attempt(
        candidate_id=auth.candidate_id,
        exam_version_id=version.id,
        ticket_id=auth.ticket_id,
        status=AttemptStatus.NOT_STARTED,
    )
    db.add(attempt)
    try:
        db.flush()  # attempt.id 생성. 동시 시작은 ticket_id UNIQUE 에서 걸린다
    except IntegrityError as e:
        logger.warning("[ATTEMPT] concurrent start rejected ticket_id=%s", auth.ticket_id)
        raise InvalidStateError(message="attempt already exists for ticket") from e

    db.add(AttemptSession(attempt_id=attempt.id, status=AttemptSessionStatus.ACTIVE))

    db.add_all([
        AttemptItem(
            attempt_id=attempt.id,
            module_id=q.module_id,
            question_id=q.question_id,
            position=q.position,
            points=q.points,
        )
        for q in version_questions
    ])

    db.add_all([
        AttemptModuleTimer(
            attempt_id=attempt.id,
            module_id=m.module_id,
            time_limit_seconds=m.duration_seconds,
            remaining_seconds=m.duration_seconds,
        )
        for m in version_modules
    ])

    transition(attempt, AttemptStatus.IN_PROGRESS)
    attempt.started_at = datetime.now(timezone.utc)
    db.flush()

    logger.info(
        "[ATTEMPT] started attempt_id=%s ticket_id=%s items=%s modules=%s",
        attempt.id, auth.ticket_id, len(version_questions), len(version_modules),
    )
    return attempt


def submit_attempt(db: Session, ticket_code: str, pin: str) -> Attempt:
    """
    제출과 채점은 하나의 트랜잭션이다.
    채점이 실패하면 예외를 던져 제출까지 함께 롤백시킨다.
    """
    auth = authorize_candidate_access(db, ticket_code, pin)
    attempt = load_attempt_for_update(db, ticket_id=auth.ticket_id)

    previous = transition(attempt, AttemptStatus.SUBMITTED)  # IN_PROGRESS 에서만 허용
    attempt.submitted_at = datetime.now(timezone.utc)

    ticket = db.get(Ticket, auth.ticket_id)
    ticket.status = TicketStatus.USED

    record_audit_log(
        db,
        action="ATTEMPT_SUBMITTED",
        entity_type="ATTEMPT",
        entity_id=attempt.id,
        metadata={"previousStatus": previous.value},
    )
    db.flush()

    result = score_attempt(db, attempt.id)
    result.raise_for_error()

    logger.info("[ATTEMPT] submitted and scored attempt_id=%s", attempt.id)
    return attempt
