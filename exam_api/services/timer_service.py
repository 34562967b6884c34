# exam_api/services/timer_service.py
"""
모듈별 제한시간(time-box) 트래커.

클라이언트는 1초마다 로컬 카운트다운을 돌리고 ~10초마다 "경과 초"만 보낸다.
서버는 절대값(남은 시간)을 받지 않고 경과량만 차감한다.
- remaining = max(0, remaining - elapsed)
- started_at: 첫 갱신 시 1회 기록
- ended_at: 0 에 도달한 시점 1회 기록 (이미 있으면 유지)
attempt 가 IN_PROGRESS 가 아니면(LOCKED 포함) 갱신하지 않는다.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from exam_api.models.attempts import Attempt, AttemptModuleTimer
from exam_api.models.enums import AttemptStatus
from exam_api.services.candidate_auth import authorize_candidate_access
from exam_api.services.errors import DataIntegrityError, InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)


def next_remaining(remaining_seconds: int, elapsed_seconds: int) -> int:
    return max(0, remaining_seconds - elapsed_seconds)


def apply_elapsed(db: Session, attempt_id: int, module_id: int, elapsed_seconds: int) -> int:
    if elapsed_seconds is None or elapsed_seconds < 0:
        raise DataIntegrityError("invalid_elapsed")

    attempt = (
        db.query(Attempt)
        .filter(Attempt.id == attempt_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if attempt is None:
        raise NotFoundError("attempt_not_found")
    if attempt.status != AttemptStatus.IN_PROGRESS:
        # LOCKED 상태에서는 여기서 막혀 카운트다운이 멈춘다
        raise InvalidStateError(message=f"timer frozen while attempt is {attempt.status.value}")

    timer = (
        db.query(AttemptModuleTimer)
        .filter(
            AttemptModuleTimer.attempt_id == attempt_id,
            AttemptModuleTimer.module_id == module_id,
        )
        .with_for_update()
        .first()
    )
    if timer is None:
        raise NotFoundError("module_timer_not_found")

    now = datetime.now(timezone.utc)
    remaining = next_remaining(timer.remaining_seconds, elapsed_seconds)

    timer.remaining_seconds = remaining
    if timer.started_at is None:
        timer.started_at = now
    if remaining == 0 and timer.ended_at is None:
        timer.ended_at = now
        logger.info("[TIMER] module time-box exhausted attempt_id=%s module_id=%s", attempt_id, module_id)

    db.flush()
    logger.debug(
        "[TIMER] attempt_id=%s module_id=%s elapsed=%s remaining=%s",
        attempt_id, module_id, elapsed_seconds, remaining,
    )
    return remaining


def update_timer(db: Session, ticket_code: str, pin: str, module_id: int, elapsed_seconds: int) -> int:
    """수험자 API 진입점: 인증 후 본인 attempt 의 타이머를 갱신한다."""
    auth = authorize_candidate_access(db, ticket_code, pin)
    attempt_id = db.query(Attempt.id).filter(Attempt.ticket_id == auth.ticket_id).scalar()
    if attempt_id is None:
        raise NotFoundError("attempt_not_found")
    return apply_elapsed(db, attempt_id, module_id, elapsed_seconds)
