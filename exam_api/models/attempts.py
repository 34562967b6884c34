# exam_api/models/attempts.py
from sqlalchemy import (
    Column, Integer, DateTime, ForeignKey, Enum, Index, UniqueConstraint, func, text,
)
from exam_api.db.base import Base, IdType
from exam_api.models.enums import AttemptStatus, AttemptSessionStatus

class Attempt(Base):
    __tablename__ = "attempts"

    id = Column(IdType, primary_key=True, index=True)
    candidate_id = Column(IdType, ForeignKey("candidates.id"), nullable=False, index=True)
    exam_version_id = Column(IdType, ForeignKey("exam_versions.id"), nullable=False)
    ticket_id = Column(IdType, ForeignKey("tickets.id"), nullable=False, unique=True)  # ticket당 1개

    status = Column(
        Enum(AttemptStatus, name="attempt_status", native_enum=False),
        nullable=False,
        default=AttemptStatus.NOT_STARTED,
    )
    started_at = Column(DateTime(timezone=True), nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    locked_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    __table_args__ = (
        Index("ix_attempts_status_created_at", "status", "created_at"),
    )


class AttemptSession(Base):
    # 단말 하나가 attempt를 점유하고 있음을 나타내는 행. ACTIVE는 attempt당 최대 1개
    __tablename__ = "attempt_sessions"

    id = Column(IdType, primary_key=True, index=True)
    attempt_id = Column(IdType, ForeignKey("attempts.id"), nullable=False, index=True)
    device_id = Column(IdType, ForeignKey("devices.id"), nullable=True)
    status = Column(
        Enum(AttemptSessionStatus, name="attempt_session_status", native_enum=False),
        nullable=False,
        default=AttemptSessionStatus.ACTIVE,
    )
    created_by_staff_user_id = Column(IdType, ForeignKey("staff_users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index(
            "uq_attempt_sessions_one_active",
            "attempt_id",
            unique=True,
            postgresql_where=text("status = 'ACTIVE'"),
            sqlite_where=text("status = 'ACTIVE'"),
        ),
    )


class AttemptItem(Base):
    # 시작 시점에 시험 버전에서 복사(비정규화)한 문항 인스턴스. 생성 후 변경 없음
    __tablename__ = "attempt_items"

    id = Column(IdType, primary_key=True, index=True)
    attempt_id = Column(IdType, ForeignKey("attempts.id"), nullable=False, index=True)
    module_id = Column(IdType, ForeignKey("exam_modules.id"), nullable=False)
    question_id = Column(IdType, ForeignKey("questions.id"), nullable=False)
    position = Column(Integer, nullable=False)
    points = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_attempt_items_attempt_question"),
        Index("ix_attempt_items_attempt_id_module_id", "attempt_id", "module_id"),
    )


class AttemptAnswer(Base):
    # 현재 선택 상태만 보관(이력 없음). 덮어쓰기
    __tablename__ = "attempt_answers"

    id = Column(IdType, primary_key=True, index=True)
    attempt_item_id = Column(IdType, ForeignKey("attempt_items.id"), nullable=False, unique=True)
    selected_option_id = Column(IdType, ForeignKey("question_options.id"), nullable=True)
    answered_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())


class AttemptModuleTimer(Base):
    __tablename__ = "attempt_module_timers"

    id = Column(IdType, primary_key=True, index=True)
    attempt_id = Column(IdType, ForeignKey("attempts.id"), nullable=False)
    module_id = Column(IdType, ForeignKey("exam_modules.id"), nullable=False)
    time_limit_seconds = Column(Integer, nullable=False)
    remaining_seconds = Column(Integer, nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    ended_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("attempt_id", "module_id", name="uq_attempt_module_timers_attempt_module"),
    )
