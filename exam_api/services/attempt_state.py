# exam_api/services/attempt_state.py
"""
Attempt 상태 머신.

    NOT_STARTED -> IN_PROGRESS <-> LOCKED
    IN_PROGRESS -> SUBMITTED -> SCORED
    (SCORED / ABORTED 를 제외한 모든 상태) -> ABORTED

LOCKED <-> IN_PROGRESS 왕복(이어하기)만 예외적으로 되돌아갈 수 있고,
나머지 전이는 모두 한 방향이다.

모든 전이는 트랜잭션 안에서 attempt 행을 다시 읽은 뒤(load_attempt_for_update)
현재 상태를 확인하고 수행한다. 조건이 맞지 않으면 아무것도 바꾸지 않고
InvalidStateError 를 던진다.
"""
import logging
from typing import Dict, FrozenSet, Optional

from sqlalchemy.orm import Session

from exam_api.models.attempts import Attempt
from exam_api.models.enums import AttemptStatus
from exam_api.services.errors import InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)

TERMINAL_STATUSES: FrozenSet[AttemptStatus] = frozenset({
    AttemptStatus.SCORED,
    AttemptStatus.ABORTED,
})

ALLOWED_TRANSITIONS: Dict[AttemptStatus, FrozenSet[AttemptStatus]] = {
    AttemptStatus.NOT_STARTED: frozenset({AttemptStatus.IN_PROGRESS, AttemptStatus.ABORTED}),
    AttemptStatus.IN_PROGRESS: frozenset({
        AttemptStatus.LOCKED,
        AttemptStatus.SUBMITTED,
        AttemptStatus.ABORTED,
    }),
    AttemptStatus.LOCKED: frozenset({AttemptStatus.IN_PROGRESS, AttemptStatus.ABORTED}),
    AttemptStatus.SUBMITTED: frozenset({AttemptStatus.SCORED, AttemptStatus.ABORTED}),
    AttemptStatus.SCORED: frozenset(),
    AttemptStatus.ABORTED: frozenset(),
}


def can_transition(current: AttemptStatus, target: AttemptStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def transition(attempt: Attempt, target: AttemptStatus) -> AttemptStatus:
    """상태를 target 으로 바꾸고 이전 상태를 반환한다."""
    previous = attempt.status
    if not can_transition(previous, target):
        logger.warning(
            "[ATTEMPT] rejected transition attempt_id=%s %s -> %s",
            attempt.id, previous.value, target.value,
        )
        raise InvalidStateError(previous, target)

    attempt.status = target
    logger.info("[ATTEMPT] attempt_id=%s %s -> %s", attempt.id, previous.value, target.value)
    return previous


def require_status(attempt: Attempt, expected: AttemptStatus) -> None:
    if attempt.status != expected:
        raise InvalidStateError(
            attempt.status, expected,
            message=f"attempt is {attempt.status.value}, expected {expected.value}",
        )


def _attempt_query(db: Session, attempt_id: Optional[int], ticket_id: Optional[int]):
    query = db.query(Attempt)
    if attempt_id is not None:
        return query.filter(Attempt.id == attempt_id)
    if ticket_id is not None:
        return query.filter(Attempt.ticket_id == ticket_id)
    raise ValueError("attempt_id or ticket_id is required")


def load_attempt_for_update(
    db: Session,
    attempt_id: Optional[int] = None,
    ticket_id: Optional[int] = None,
) -> Attempt:
    """
    attempt 행을 SELECT ... FOR UPDATE 로 다시 읽는다.
    (SQLite 는 FOR UPDATE 절을 생략하고 DB 단위 쓰기 잠금으로 직렬화된다)
    """
    attempt = _attempt_query(db, attempt_id, ticket_id).with_for_update().populate_existing().first()
    if attempt is None:
        raise NotFoundError("attempt_not_found")
    return attempt


def load_attempt(
    db: Session,
    attempt_id: Optional[int] = None,
    ticket_id: Optional[int] = None,
) -> Attempt:
    """잠금 없이 읽는다. 상태를 바꾸지 않는 경로(행동계측 등) 전용."""
    attempt = _attempt_query(db, attempt_id, ticket_id).populate_existing().first()
    if attempt is None:
        raise NotFoundError("attempt_not_found")
    return attempt
