# exam_api/routers/candidate.py
# 수험자 API: 로그인 / 시작 / 스냅샷 / 답안 / 타이머 / 행동계측 / 제출
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from exam_api.deps import get_db
from exam_api.models.scores import AttemptScore
from exam_api.schemas.attempt import (
    AnswerIn,
    AnswerOut,
    AttemptSnapshotOut,
    CandidateCredentials,
    LoginOut,
    StartOut,
    SubmitOut,
    TelemetryIn,
    TelemetryOut,
    TimerIn,
    TimerOut,
)
from exam_api.services import (
    answer_service,
    attempt_service,
    candidate_auth,
    snapshot_service,
    telemetry_service,
    timer_service,
)
from exam_api.services.errors import AttemptError, raise_http

router = APIRouter(prefix="/api/candidate", tags=["candidate"])


@router.post("/login", response_model=LoginOut)
def login(payload: CandidateCredentials, db: Session = Depends(get_db)):
    try:
        record = candidate_auth.authorize_candidate(db, payload.ticket_code, payload.pin)
    except AttemptError as e:
        raise_http(e)
    return LoginOut(
        candidate_id=record.candidate_id,
        ticket_id=record.ticket_id,
        exam_version_id=record.exam_version_id,
    )


@router.post("/start", response_model=StartOut)
def start(payload: CandidateCredentials, db: Session = Depends(get_db)):
    try:
        attempt = attempt_service.start_attempt(db, payload.ticket_code, payload.pin)
    except AttemptError as e:
        raise_http(e)
    return StartOut(attempt_id=attempt.id)


# 화면 복원용 (새로고침 / 단말 교체 후)
@router.post("/attempt", response_model=AttemptSnapshotOut)
def attempt_snapshot(payload: CandidateCredentials, db: Session = Depends(get_db)):
    try:
        return snapshot_service.get_attempt_snapshot(db, payload.ticket_code, payload.pin)
    except AttemptError as e:
        raise_http(e)


@router.post("/answer", response_model=AnswerOut)
def answer(payload: AnswerIn, db: Session = Depends(get_db)):
    try:
        saved = answer_service.submit_answer(
            db,
            payload.ticket_code,
            payload.pin,
            payload.attempt_item_id,
            payload.selected_option_id,
        )
    except AttemptError as e:
        raise_http(e)
    return AnswerOut(
        attempt_item_id=saved.attempt_item_id,
        selected_option_id=saved.selected_option_id,
    )


@router.post("/timer", response_model=TimerOut)
def timer(payload: TimerIn, db: Session = Depends(get_db)):
    try:
        remaining = timer_service.update_timer(
            db,
            payload.ticket_code,
            payload.pin,
            payload.module_id,
            payload.elapsed_seconds,
        )
    except AttemptError as e:
        raise_http(e)
    return TimerOut(remaining_seconds=remaining)


@router.post("/telemetry", response_model=TelemetryOut)
def telemetry(payload: TelemetryIn, db: Session = Depends(get_db)):
    try:
        item_id, metrics = telemetry_service.submit_telemetry(
            db,
            payload.ticket_code,
            payload.pin,
            payload.event_type,
            attempt_item_id=payload.attempt_item_id,
            client_time=payload.client_time,
            metadata=payload.metadata,
        )
    except AttemptError as e:
        raise_http(e)
    return TelemetryOut(
        attempt_item_id=item_id,
        metrics=metrics.to_dict() if metrics else None,
    )


@router.post("/submit", response_model=SubmitOut)
def submit(payload: CandidateCredentials, db: Session = Depends(get_db)):
    try:
        attempt = attempt_service.submit_attempt(db, payload.ticket_code, payload.pin)
    except AttemptError as e:
        raise_http(e)

    score = db.get(AttemptScore, attempt.id)
    return {
        "attempt_id": attempt.id,
        "status": attempt.status,
        "score": {"raw_score": score.raw_score, "max_score": score.max_score},
    }
