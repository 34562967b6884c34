# exam_api/services/takeover_service.py
"""
단말 교체(takeover) 컨트롤러.

감독관이 응시 중인 attempt 를 잠그고(lock) 새 단말에서 이어하기(resume) 한다.
- lock: IN_PROGRESS 이고 ACTIVE 세션이 정확히 1개일 때만. 세션 회수 + LOCKED
  (IN_PROGRESS 가 아니게 되므로 타이머 갱신도 멈춘다)
- resume: LOCKED 일 때만. 남은 ACTIVE 세션을 회수하고 새 세션 발급 + IN_PROGRESS
- abort: 종료 상태(SCORED/ABORTED)가 아니면 ABORTED 로 전환
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from exam_api.models.attempts import Attempt, AttemptSession
from exam_api.models.enums import AttemptSessionStatus, AttemptStatus
from exam_api.models.staff import Device
from exam_api.services.attempt_state import load_attempt_for_update, require_status, transition
from exam_api.services.audit_log import record_audit_log
from exam_api.services.errors import InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)


def _active_sessions(db: Session, attempt_id: int):
    return db.query(AttemptSession).filter(
        AttemptSession.attempt_id == attempt_id,
        AttemptSession.status == AttemptSessionStatus.ACTIVE,
    )


def _revoke_active_sessions(db: Session, attempt_id: int, now: datetime) -> int:
    # UPDATE 를 즉시 실행해서 새 ACTIVE 세션 INSERT 보다 먼저 반영되게 한다
    return _active_sessions(db, attempt_id).update(
        {
            AttemptSession.status: AttemptSessionStatus.REVOKED,
            AttemptSession.revoked_at: now,
        },
        synchronize_session="fetch",
    )


def lock_attempt(db: Session, attempt_id: int, staff_user_id: int) -> Attempt:
    attempt = load_attempt_for_update(db, attempt_id=attempt_id)
    require_status(attempt, AttemptStatus.IN_PROGRESS)

    active_count = _active_sessions(db, attempt_id).count()
    if active_count != 1:
        logger.warning(
            "[TAKEOVER] lock rejected attempt_id=%s active_sessions=%s", attempt_id, active_count,
        )
        raise InvalidStateError(message=f"expected one active session, found {active_count}")

    now = datetime.now(timezone.utc)
    previous = transition(attempt, AttemptStatus.LOCKED)
    attempt.locked_at = now
    _revoke_active_sessions(db, attempt_id, now)

    record_audit_log(
        db,
        action="ATTEMPT_LOCKED",
        entity_type="ATTEMPT",
        entity_id=attempt_id,
        actor_staff_user_id=staff_user_id,
        metadata={"previousStatus": previous.value},
    )
    db.flush()
    logger.info("[TAKEOVER] locked attempt_id=%s by staff=%s", attempt_id, staff_user_id)
    return attempt


def resume_attempt(
    db: Session,
    attempt_id: int,
    staff_user_id: int,
    device_id: Optional[int] = None,
) -> AttemptSession:
    attempt = load_attempt_for_update(db, attempt_id=attempt_id)
    require_status(attempt, AttemptStatus.LOCKED)

    if device_id is not None and db.get(Device, device_id) is None:
        raise NotFoundError("device_not_found")

    now = datetime.now(timezone.utc)
    _revoke_active_sessions(db, attempt_id, now)

    session = AttemptSession(
        attempt_id=attempt_id,
        device_id=device_id,
        status=AttemptSessionStatus.ACTIVE,
        created_by_staff_user_id=staff_user_id,
    )
    db.add(session)

    previous = transition(attempt, AttemptStatus.IN_PROGRESS)
    attempt.locked_at = None

    record_audit_log(
        db,
        action="ATTEMPT_RESUMED",
        entity_type="ATTEMPT",
        entity_id=attempt_id,
        actor_staff_user_id=staff_user_id,
        metadata={"previousStatus": previous.value, "deviceId": device_id},
    )
    db.flush()
    logger.info(
        "[TAKEOVER] resumed attempt_id=%s session_id=%s device=%s", attempt_id, session.id, device_id,
    )
    return session


def abort_attempt(
    db: Session,
    attempt_id: int,
    staff_user_id: int,
    reason: Optional[str] = None,
) -> Attempt:
    attempt = load_attempt_for_update(db, attempt_id=attempt_id)

    now = datetime.now(timezone.utc)
    previous = transition(attempt, AttemptStatus.ABORTED)
    _revoke_active_sessions(db, attempt_id, now)

    record_audit_log(
        db,
        action="ATTEMPT_ABORTED",
        entity_type="ATTEMPT",
        entity_id=attempt_id,
        actor_staff_user_id=staff_user_id,
        metadata={"previousStatus": previous.value, "reason": reason},
    )
    db.flush()
    logger.info("[TAKEOVER] aborted attempt_id=%s reason=%s", attempt_id, reason)
    return attempt
