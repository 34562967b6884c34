# exam_api/services/results_service.py
# 스태프용 조회: attempt 목록 / 결과 상세
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from exam_api.models.attempts import Attempt
from exam_api.models.candidate import Candidate, Ticket
from exam_api.models.enums import AttemptStatus
from exam_api.models.exam import Exam, ExamModule, ExamVersion
from exam_api.models.scores import AttemptModuleScore, AttemptScore
from exam_api.services.errors import NotFoundError


def _iso(value):
    return value.isoformat() if value else None


def _score(score):
    if score is None:
        return None
    return {
        "raw_score": score.raw_score,
        "max_score": score.max_score,
        "scored_at": _iso(score.scored_at),
    }


def list_attempts(
    db: Session,
    status: Optional[AttemptStatus] = None,
    ticket_code: Optional[str] = None,
    candidate_name: Optional[str] = None,
) -> List[Dict]:
    """
    조건에 맞는 attempt 전부 (최신순). 점수가 있으면 총점도 함께 내려준다.
    수험표 코드 / 이름은 대소문자 무시 부분 일치.
    """
    query = (
        db.query(Attempt, Ticket.ticket_code, Candidate.full_name, AttemptScore)
        .join(Ticket, Ticket.id == Attempt.ticket_id)
        .join(Candidate, Candidate.id == Attempt.candidate_id)
        .outerjoin(AttemptScore, AttemptScore.attempt_id == Attempt.id)
    )
    if status is not None:
        query = query.filter(Attempt.status == status)
    if ticket_code:
        query = query.filter(Ticket.ticket_code.icontains(ticket_code, autoescape=True))
    if candidate_name:
        query = query.filter(Candidate.full_name.icontains(candidate_name, autoescape=True))

    rows = query.order_by(Attempt.created_at.desc(), Attempt.id.desc()).all()
    return [
        {
            "attempt_id": a.id,
            "status": a.status.value,
            "ticket_code": code,
            "candidate_name": name,
            "started_at": _iso(a.started_at),
            "submitted_at": _iso(a.submitted_at),
            "locked_at": _iso(a.locked_at),
            "total_score": _score(score),
        }
        for a, code, name, score in rows
    ]


def get_attempt_result_detail(db: Session, attempt_id: int) -> Dict:
    row = (
        db.query(Attempt, Ticket.ticket_code, Candidate.full_name, Exam.name, ExamVersion.version_number)
        .join(Ticket, Ticket.id == Attempt.ticket_id)
        .join(Candidate, Candidate.id == Attempt.candidate_id)
        .join(ExamVersion, ExamVersion.id == Attempt.exam_version_id)
        .join(Exam, Exam.id == ExamVersion.exam_id)
        .filter(Attempt.id == attempt_id)
        .first()
    )
    if row is None:
        raise NotFoundError("attempt_not_found")

    attempt, ticket_code, candidate_name, exam_name, version_number = row

    total = db.get(AttemptScore, attempt_id)
    module_scores = (
        db.query(AttemptModuleScore, ExamModule.code, ExamModule.name)
        .join(ExamModule, ExamModule.id == AttemptModuleScore.module_id)
        .filter(AttemptModuleScore.attempt_id == attempt_id)
        .order_by(ExamModule.code)
        .all()
    )

    return {
        "attempt_id": attempt.id,
        "status": attempt.status.value,
        "submitted_at": _iso(attempt.submitted_at),
        "candidate_name": candidate_name,
        "ticket_code": ticket_code,
        "exam_name": exam_name,
        "exam_version": version_number,
        "total_score": _score(total),
        "module_scores": [
            {
                "module_code": code,
                "module_name": name,
                "raw_score": score.raw_score,
                "max_score": score.max_score,
                "scored_at": _iso(score.scored_at),
            }
            for score, code, name in module_scores
        ],
    }
