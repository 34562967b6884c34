from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from exam_api.models.enums import AttemptStatus, TelemetryEventType

# -- Request (수험자) --

# 모든 수험자 요청은 수험표 코드 + PIN 을 함께 보낸다
class CandidateCredentials(BaseModel):
    ticket_code: str = Field(..., min_length=1, max_length=64, description="수험표 코드")
    pin: str = Field(..., min_length=1, max_length=32, description="PIN")

class AnswerIn(CandidateCredentials):
    attempt_item_id: int
    selected_option_id: Optional[int] = Field(None, description="None 이면 선택 해제")

class TimerIn(CandidateCredentials):
    module_id: int
    elapsed_seconds: int = Field(..., ge=0, description="직전 보고 이후 경과 초 (절대값 아님)")

class TelemetryIn(CandidateCredentials):
    event_type: TelemetryEventType
    attempt_item_id: Optional[int] = None
    client_time: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None

# -- Request (스태프) --

class LockIn(BaseModel):
    attempt_id: int

class ResumeIn(BaseModel):
    attempt_id: int
    device_id: Optional[int] = Field(None, description="새 단말 ID (선택)")

class AbortIn(BaseModel):
    attempt_id: int
    reason: Optional[str] = Field(None, max_length=200)

# -- Response --

class LoginOut(BaseModel):
    candidate_id: int
    ticket_id: int
    exam_version_id: int

class StartOut(BaseModel):
    attempt_id: int

class AnswerOut(BaseModel):
    attempt_item_id: int
    selected_option_id: Optional[int] = None

class TimerOut(BaseModel):
    remaining_seconds: int

class MetricsOut(BaseModel):
    observed_seconds: int
    active_seconds: int
    view_count: int
    answer_change_count: int

class TelemetryOut(BaseModel):
    attempt_item_id: Optional[int] = None
    metrics: Optional[MetricsOut] = None

class AttemptStatusOut(BaseModel):
    attempt_id: int
    status: AttemptStatus

class ResumeOut(AttemptStatusOut):
    session_id: int

# -- Snapshot --

class OptionSnapshot(BaseModel):
    id: int
    position: int
    option_text: str

class QuestionSnapshot(BaseModel):
    id: int
    stem: str
    options: List[OptionSnapshot]

class ItemSnapshot(BaseModel):
    attempt_item_id: int
    module_id: int
    position: int
    points: int
    selected_option_id: Optional[int] = None
    question: QuestionSnapshot

class ModuleSnapshot(BaseModel):
    module_id: int
    code: str
    name: str
    position: int
    duration_seconds: int
    remaining_seconds: int

class AttemptSnapshotOut(BaseModel):
    attempt_id: int
    status: AttemptStatus
    idle_timeout_seconds: int
    modules: List[ModuleSnapshot]
    items: List[ItemSnapshot]

class SubmitScoreOut(BaseModel):
    raw_score: int
    max_score: int

class SubmitOut(AttemptStatusOut):
    score: SubmitScoreOut
