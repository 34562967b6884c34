# exam_api/routers/staff_attempts.py
# 스태프 API: 잠금 / 이어하기 / 중단 / 목록 / 결과 상세
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from exam_api.deps import get_db, require_staff
from exam_api.models.enums import AttemptStatus, StaffRole
from exam_api.schemas.attempt import AbortIn, AttemptStatusOut, LockIn, ResumeIn, ResumeOut
from exam_api.schemas.results import AttemptResultOut, AttemptRow
from exam_api.services import results_service, takeover_service
from exam_api.services.errors import AttemptError, raise_http

router = APIRouter(prefix="/api/staff", tags=["staff"])

proctor_only = require_staff(StaffRole.ADMIN, StaffRole.PROCTOR)
attempt_viewers = require_staff(StaffRole.ADMIN, StaffRole.PROCTOR, StaffRole.REPORT_VIEWER)
report_viewers = require_staff(StaffRole.ADMIN, StaffRole.REPORT_VIEWER)


@router.post("/attempts/lock", response_model=AttemptStatusOut)
def lock(payload: LockIn, staff=Depends(proctor_only), db: Session = Depends(get_db)):
    try:
        attempt = takeover_service.lock_attempt(db, payload.attempt_id, staff["id"])
    except AttemptError as e:
        raise_http(e)
    return AttemptStatusOut(attempt_id=attempt.id, status=attempt.status)


@router.post("/attempts/resume", response_model=ResumeOut)
def resume(payload: ResumeIn, staff=Depends(proctor_only), db: Session = Depends(get_db)):
    try:
        session = takeover_service.resume_attempt(
            db, payload.attempt_id, staff["id"], device_id=payload.device_id,
        )
    except AttemptError as e:
        raise_http(e)
    return ResumeOut(
        attempt_id=payload.attempt_id,
        status=AttemptStatus.IN_PROGRESS,
        session_id=session.id,
    )


@router.post("/attempts/abort", response_model=AttemptStatusOut)
def abort(payload: AbortIn, staff=Depends(proctor_only), db: Session = Depends(get_db)):
    try:
        attempt = takeover_service.abort_attempt(
            db, payload.attempt_id, staff["id"], reason=payload.reason,
        )
    except AttemptError as e:
        raise_http(e)
    return AttemptStatusOut(attempt_id=attempt.id, status=attempt.status)


# attempt 목록 (최신순)
@router.get("/attempts", response_model=List[AttemptRow])
def list_attempts(
    status: Optional[AttemptStatus] = Query(None, description="상태 필터"),
    ticket_code: Optional[str] = Query(None, description="수험표 코드 (부분 일치)"),
    candidate_name: Optional[str] = Query(None, description="수험자 이름 (부분 일치)"),
    staff=Depends(attempt_viewers),
    db: Session = Depends(get_db),
):
    return results_service.list_attempts(
        db, status=status, ticket_code=ticket_code, candidate_name=candidate_name,
    )


@router.get("/results/{attempt_id}", response_model=AttemptResultOut)
def result_detail(attempt_id: int, staff=Depends(report_viewers), db: Session = Depends(get_db)):
    try:
        return results_service.get_attempt_result_detail(db, attempt_id)
    except AttemptError as e:
        raise_http(e)
