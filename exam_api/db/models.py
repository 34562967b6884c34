# exam_api/db/models.py
# 모든 테이블 모델을 한 번에 import 해서 Base.metadata에 등록한다 (create_all / 테스트용)
from exam_api.db.base import Base
from exam_api.models.candidate import Candidate, Ticket
from exam_api.models.exam import Exam, ExamVersion, ExamModule, ExamVersionModule, ExamVersionQuestion
from exam_api.models.question import Question, QuestionOption
from exam_api.models.staff import StaffUser, Device
from exam_api.models.audit_log import AuditLog
from exam_api.models.attempts import (
    Attempt, AttemptSession, AttemptItem, AttemptAnswer, AttemptModuleTimer,
)
from exam_api.models.telemetry import AttemptItemEvent, AttemptItemMetric
from exam_api.models.scores import AttemptAnswerScore, AttemptModuleScore, AttemptScore

__all__ = [
    "Base",
    "Candidate", "Ticket",
    "Exam", "ExamVersion", "ExamModule", "ExamVersionModule", "ExamVersionQuestion",
    "Question", "QuestionOption",
    "StaffUser", "Device",
    "AuditLog",
    "Attempt", "AttemptSession", "AttemptItem", "AttemptAnswer", "AttemptModuleTimer",
    "AttemptItemEvent", "AttemptItemMetric",
    "AttemptAnswerScore", "AttemptModuleScore", "AttemptScore",
]
