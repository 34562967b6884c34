# exam_api/models/enums.py
# 상태 코드 정의. DB에는 native enum 대신 문자열(VARCHAR)로 저장한다.
import enum


class AttemptStatus(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    LOCKED = "LOCKED"
    SUBMITTED = "SUBMITTED"
    SCORED = "SCORED"
    ABORTED = "ABORTED"


class AttemptSessionStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    REVOKED = "REVOKED"


class TicketStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    USED = "USED"
    REVOKED = "REVOKED"


class ExamVersionStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class StaffRole(str, enum.Enum):
    ADMIN = "ADMIN"
    AUTHOR = "AUTHOR"
    PROCTOR = "PROCTOR"
    REPORT_VIEWER = "REPORT_VIEWER"


class TelemetryEventType(str, enum.Enum):
    VIEW = "VIEW"
    HIDE = "HIDE"
    ANSWER_SELECT = "ANSWER_SELECT"
    IDLE_START = "IDLE_START"
    IDLE_END = "IDLE_END"
    VISIBILITY_HIDDEN = "VISIBILITY_HIDDEN"
    VISIBILITY_VISIBLE = "VISIBILITY_VISIBLE"
    HEARTBEAT = "HEARTBEAT"
