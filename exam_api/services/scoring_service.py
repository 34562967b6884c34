# exam_api/services/scoring_service.py
"""
채점 엔진.

제출(SUBMITTED)된 attempt 를 한 번만 채점한다.
- 문항별: 선택한 보기 == 정답 보기 이면 item.points, 아니면 0 (부분 점수 없음)
- 모듈별: 문항 점수 합 / 배점 합
- 전체: 모듈 합계의 합
- 미응답 문항은 0점이지만 배점(max_score)에는 포함된다.

점수 행(AttemptAnswerScore / AttemptModuleScore / AttemptScore) 생성과
SCORED 전이는 상태 확인과 같은 트랜잭션에서 일어난다. 점수 행이 이미 있으면
다시 채점하지 않고 ALREADY_SCORED 를 돌려준다.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from exam_api.models.attempts import Attempt, AttemptAnswer, AttemptItem
from exam_api.models.enums import AttemptStatus
from exam_api.models.question import QuestionOption
from exam_api.models.scores import AttemptAnswerScore, AttemptModuleScore, AttemptScore
from exam_api.services.attempt_state import transition
from exam_api.services.errors import AlreadyScoredError, InvalidStateError, NotFoundError

logger = logging.getLogger(__name__)

ATTEMPT_NOT_FOUND = "ATTEMPT_NOT_FOUND"
INVALID_STATE = "INVALID_STATE"
ALREADY_SCORED = "ALREADY_SCORED"


@dataclass
class ScoreResult:
    ok: bool
    error: Optional[str] = None

    def raise_for_error(self) -> None:
        if self.ok:
            return
        if self.error == ATTEMPT_NOT_FOUND:
            raise NotFoundError("attempt_not_found")
        if self.error == ALREADY_SCORED:
            raise AlreadyScoredError()
        raise InvalidStateError(message="attempt cannot be scored")


@dataclass
class ItemScore:
    attempt_item_id: int
    module_id: int
    is_correct: bool
    points_awarded: int
    max_points: int


@dataclass
class ScoreTotals:
    raw_score: int = 0
    max_score: int = 0


def grade_items(
    items: List[AttemptItem],
    selected_by_item: Dict[int, Optional[int]],
    correct_by_question: Dict[int, int],
) -> List[ItemScore]:
    """DB 없이 계산만 하는 부분. 문항 순서를 그대로 유지한다."""
    scores = []
    for item in items:
        selected = selected_by_item.get(item.id)
        correct = correct_by_question.get(item.question_id)
        is_correct = selected is not None and correct is not None and selected == correct
        scores.append(ItemScore(
            attempt_item_id=item.id,
            module_id=item.module_id,
            is_correct=is_correct,
            points_awarded=item.points if is_correct else 0,
            max_points=item.points,
        ))
    return scores


def aggregate_by_module(item_scores: List[ItemScore]) -> "OrderedDict[int, ScoreTotals]":
    totals: "OrderedDict[int, ScoreTotals]" = OrderedDict()
    for score in item_scores:
        current = totals.setdefault(score.module_id, ScoreTotals())
        current.raw_score += score.points_awarded
        current.max_score += score.max_points
    return totals


def score_attempt(db: Session, attempt_id: int) -> ScoreResult:
    """
    호출한 쪽 트랜잭션 안에서 실행된다 (제출 API 에서 같은 세션으로 호출).
    attempt 행은 호출 측에서 이미 FOR UPDATE 로 읽었다고 가정하지 않고 다시 읽는다.
    """
    attempt = (
        db.query(Attempt)
        .filter(Attempt.id == attempt_id)
        .with_for_update()
        .first()
    )
    if attempt is None:
        return ScoreResult(ok=False, error=ATTEMPT_NOT_FOUND)

    if attempt.status == AttemptStatus.SCORED:
        return ScoreResult(ok=False, error=ALREADY_SCORED)

    if attempt.status != AttemptStatus.SUBMITTED:
        return ScoreResult(ok=False, error=INVALID_STATE)

    items = (
        db.query(AttemptItem)
        .filter(AttemptItem.attempt_id == attempt_id)
        .order_by(AttemptItem.module_id, AttemptItem.position)
        .all()
    )
    if not items:
        return ScoreResult(ok=False, error=INVALID_STATE)

    item_ids = [item.id for item in items]

    # 점수 행 존재 여부가 "이미 채점됨" 가드
    existing = (
        db.query(AttemptAnswerScore.id)
        .filter(AttemptAnswerScore.attempt_item_id.in_(item_ids))
        .count()
    )
    if existing > 0:
        return ScoreResult(ok=False, error=ALREADY_SCORED)

    selected_by_item = {
        row.attempt_item_id: row.selected_option_id
        for row in (
            db.query(AttemptAnswer.attempt_item_id, AttemptAnswer.selected_option_id)
            .filter(AttemptAnswer.attempt_item_id.in_(item_ids))
            .all()
        )
    }

    question_ids = sorted({item.question_id for item in items})
    correct_by_question = {
        row.question_id: row.id
        for row in (
            db.query(QuestionOption.id, QuestionOption.question_id)
            .filter(
                QuestionOption.question_id.in_(question_ids),
                QuestionOption.is_correct.is_(True),
            )
            .all()
        )
    }

    item_scores = grade_items(items, selected_by_item, correct_by_question)
    module_totals = aggregate_by_module(item_scores)

    db.add_all([
        AttemptAnswerScore(
            attempt_item_id=score.attempt_item_id,
            is_correct=score.is_correct,
            points_awarded=score.points_awarded,
        )
        for score in item_scores
    ])
    db.add_all([
        AttemptModuleScore(
            attempt_id=attempt_id,
            module_id=module_id,
            raw_score=totals.raw_score,
            max_score=totals.max_score,
        )
        for module_id, totals in module_totals.items()
    ])

    raw_total = sum(t.raw_score for t in module_totals.values())
    max_total = sum(t.max_score for t in module_totals.values())
    db.add(AttemptScore(attempt_id=attempt_id, raw_score=raw_total, max_score=max_total))

    transition(attempt, AttemptStatus.SCORED)

    db.flush()
    logger.info(
        "[SCORING] attempt_id=%s raw=%s max=%s modules=%s",
        attempt_id, raw_total, max_total, len(module_totals),
    )
    return ScoreResult(ok=True)
