# exam_api/services/candidate_auth.py
# 수험자 인증 (수험표 코드 + PIN)
# - PIN 해시/검증
# - 로그인 허용 여부 / 응시 중 접근 허용 여부 판정
import logging
from dataclasses import dataclass

from passlib.context import CryptContext  # PIN 해시 처리용
from sqlalchemy.orm import Session

from exam_api.models.attempts import Attempt
from exam_api.models.candidate import Ticket
from exam_api.models.enums import AttemptStatus, TicketStatus
from exam_api.services.errors import UnauthorizedError

logger = logging.getLogger(__name__)

pin_ctx = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# 이 상태의 attempt가 있으면 새로 로그인(시작)할 수 없다
OPEN_ATTEMPT_STATUSES = (
    AttemptStatus.NOT_STARTED,
    AttemptStatus.IN_PROGRESS,
    AttemptStatus.LOCKED,
)


@dataclass
class CandidateAuthRecord:
    ticket_id: int
    candidate_id: int
    exam_version_id: int
    ticket_status: TicketStatus
    pin_hash: str
    has_open_attempt: bool


# ---------- PIN ----------
def hash_pin(raw: str) -> str:
    return pin_ctx.hash(raw)

def verify_pin(raw: str, hashed: str) -> bool:
    try:
        return pin_ctx.verify(raw, hashed)
    except ValueError:
        # 해시 형식이 깨진 경우는 불일치로 취급
        return False


# ---------- 조회 ----------
def fetch_candidate_auth(db: Session, ticket_code: str) -> CandidateAuthRecord | None:
    ticket = db.query(Ticket).filter(Ticket.ticket_code == ticket_code).first()
    if ticket is None:
        return None

    open_attempts = (
        db.query(Attempt.id)
        .filter(
            Attempt.ticket_id == ticket.id,
            Attempt.status.in_(OPEN_ATTEMPT_STATUSES),
        )
        .count()
    )

    return CandidateAuthRecord(
        ticket_id=ticket.id,
        candidate_id=ticket.candidate_id,
        exam_version_id=ticket.exam_version_id,
        ticket_status=ticket.status,
        pin_hash=ticket.pin_hash,
        has_open_attempt=open_attempts > 0,
    )


# ---------- 판정 ----------
def is_login_allowed(record: CandidateAuthRecord | None, pin: str) -> bool:
    return bool(
        record
        and record.ticket_status == TicketStatus.ACTIVE
        and not record.has_open_attempt
        and verify_pin(pin, record.pin_hash)
    )

def is_access_allowed(record: CandidateAuthRecord | None, pin: str) -> bool:
    return bool(
        record
        and record.ticket_status == TicketStatus.ACTIVE
        and verify_pin(pin, record.pin_hash)
    )


def authorize_candidate(db: Session, ticket_code: str, pin: str) -> CandidateAuthRecord:
    """
    로그인/응시 시작용 인증.
    진행 중인 attempt가 이미 있으면 거부한다 (중복 시작 방지).
    """
    record = fetch_candidate_auth(db, ticket_code)
    if not is_login_allowed(record, pin):
        logger.warning("[AUTH] candidate login rejected ticket=%s", ticket_code)
        raise UnauthorizedError()
    return record


def authorize_candidate_access(db: Session, ticket_code: str, pin: str) -> CandidateAuthRecord:
    """응시 중 API(답안/타이머/계측/제출) 공통 인증."""
    record = fetch_candidate_auth(db, ticket_code)
    if not is_access_allowed(record, pin):
        logger.warning("[AUTH] candidate access rejected ticket=%s", ticket_code)
        raise UnauthorizedError()
    return record
