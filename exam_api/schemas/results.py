from typing import List, Optional

from pydantic import BaseModel

from exam_api.models.enums import AttemptStatus

class ScoreOut(BaseModel):
    raw_score: int
    max_score: int
    scored_at: Optional[str] = None

class AttemptRow(BaseModel):
    attempt_id: int
    status: AttemptStatus
    ticket_code: str
    candidate_name: str
    started_at: Optional[str] = None
    submitted_at: Optional[str] = None
    locked_at: Optional[str] = None
    total_score: Optional[ScoreOut] = None  # 채점 전이면 None

class ModuleScoreOut(ScoreOut):
    module_code: str
    module_name: str

class AttemptResultOut(BaseModel):
    attempt_id: int
    status: AttemptStatus
    submitted_at: Optional[str] = None
    candidate_name: str
    ticket_code: str
    exam_name: str
    exam_version: int
    total_score: Optional[ScoreOut] = None
    module_scores: List[ModuleScoreOut]
