# exam_api/services/snapshot_service.py
"""
응시 화면 복원용 스냅샷.
이어하기(resume) 후 새 단말은 이 스냅샷으로 남은 시간/선택한 답을 그대로 이어받는다.
정답 여부(is_correct)는 절대 내려주지 않는다.
"""
from typing import Dict, List

from sqlalchemy.orm import Session

from exam_api.models.attempts import Attempt, AttemptAnswer, AttemptItem, AttemptModuleTimer
from exam_api.models.exam import ExamVersionModule
from exam_api.models.question import Question
from exam_api.services.candidate_auth import authorize_candidate_access
from exam_api.services.errors import DataIntegrityError, NotFoundError
from exam_api.services.telemetry_metrics import IDLE_TIMEOUT_SECONDS


def _serialize_question(question: Question) -> Dict:
    return {
        "id": question.id,
        "stem": question.stem,
        "options": [
            {"id": o.id, "position": o.position, "option_text": o.option_text}
            for o in question.options
        ],
    }


def build_attempt_snapshot(db: Session, attempt: Attempt) -> Dict:
    modules = (
        db.query(ExamVersionModule)
        .filter(ExamVersionModule.exam_version_id == attempt.exam_version_id)
        .order_by(ExamVersionModule.position)
        .all()
    )
    items = db.query(AttemptItem).filter(AttemptItem.attempt_id == attempt.id).all()
    if not modules or not items:
        raise DataIntegrityError("exam_version_empty")

    remaining_by_module = {
        row.module_id: row.remaining_seconds
        for row in (
            db.query(AttemptModuleTimer.module_id, AttemptModuleTimer.remaining_seconds)
            .filter(AttemptModuleTimer.attempt_id == attempt.id)
            .all()
        )
    }
    position_by_module = {m.module_id: m.position for m in modules}

    item_ids = [item.id for item in items]
    selected_by_item = {
        row.attempt_item_id: row.selected_option_id
        for row in (
            db.query(AttemptAnswer.attempt_item_id, AttemptAnswer.selected_option_id)
            .filter(AttemptAnswer.attempt_item_id.in_(item_ids))
            .all()
        )
    }

    question_ids = sorted({item.question_id for item in items})
    questions = {q.id: q for q in db.query(Question).filter(Question.id.in_(question_ids)).all()}

    # 모듈 순서 -> 모듈 내 문항 순서
    items.sort(key=lambda i: (position_by_module.get(i.module_id, 0), i.position))

    item_snapshots: List[Dict] = []
    for item in items:
        question = questions.get(item.question_id)
        if question is None:
            raise DataIntegrityError("question_missing")
        item_snapshots.append({
            "attempt_item_id": item.id,
            "module_id": item.module_id,
            "position": item.position,
            "points": item.points,
            "selected_option_id": selected_by_item.get(item.id),
            "question": _serialize_question(question),
        })

    return {
        "attempt_id": attempt.id,
        "status": attempt.status.value,
        "idle_timeout_seconds": IDLE_TIMEOUT_SECONDS,
        "modules": [
            {
                "module_id": m.module_id,
                "code": m.module.code,
                "name": m.module.name,
                "position": m.position,
                "duration_seconds": m.duration_seconds,
                "remaining_seconds": remaining_by_module.get(m.module_id, m.duration_seconds),
            }
            for m in modules
        ],
        "items": item_snapshots,
    }


def get_attempt_snapshot(db: Session, ticket_code: str, pin: str) -> Dict:
    auth = authorize_candidate_access(db, ticket_code, pin)
    attempt = db.query(Attempt).filter(Attempt.ticket_id == auth.ticket_id).first()
    if attempt is None:
        raise NotFoundError("attempt_not_found")
    return build_attempt_snapshot(db, attempt)
