# exam_api/models/exam.py
# 시험 / 시험 버전 / 모듈(섹션) 구성. 작성·배포는 외부 관리 화면 담당.
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Index, UniqueConstraint, func
from sqlalchemy.orm import relationship
from exam_api.db.base import Base, IdType
from exam_api.models.enums import ExamVersionStatus

class Exam(Base):
    __tablename__ = "exams"

    id = Column(IdType, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ExamVersion(Base):
    __tablename__ = "exam_versions"

    id = Column(IdType, primary_key=True, index=True)
    exam_id = Column(IdType, ForeignKey("exams.id"), nullable=False, index=True)
    version_number = Column(Integer, nullable=False)
    status = Column(
        Enum(ExamVersionStatus, name="exam_version_status", native_enum=False),
        nullable=False,
        default=ExamVersionStatus.DRAFT,
    )
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    exam = relationship("Exam")

    __table_args__ = (
        UniqueConstraint("exam_id", "version_number", name="uq_exam_versions_exam_id_version"),
    )


class ExamModule(Base):
    __tablename__ = "exam_modules"

    id = Column(IdType, primary_key=True, index=True)
    code = Column(String(20), nullable=False, unique=True)
    name = Column(String(100), nullable=False)


class ExamVersionModule(Base):
    __tablename__ = "exam_version_modules"

    id = Column(IdType, primary_key=True, index=True)
    exam_version_id = Column(IdType, ForeignKey("exam_versions.id"), nullable=False, index=True)
    module_id = Column(IdType, ForeignKey("exam_modules.id"), nullable=False)
    position = Column(Integer, nullable=False)
    duration_seconds = Column(Integer, nullable=False)

    module = relationship("ExamModule", lazy="joined")

    __table_args__ = (
        UniqueConstraint("exam_version_id", "module_id", name="uq_exam_version_modules_version_module"),
    )


class ExamVersionQuestion(Base):
    __tablename__ = "exam_version_questions"

    id = Column(IdType, primary_key=True, index=True)
    exam_version_id = Column(IdType, ForeignKey("exam_versions.id"), nullable=False)
    question_id = Column(IdType, ForeignKey("questions.id"), nullable=False)
    module_id = Column(IdType, ForeignKey("exam_modules.id"), nullable=False)
    position = Column(Integer, nullable=False)
    points = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("exam_version_id", "question_id", name="uq_exam_version_questions_version_question"),
        Index("ix_exam_version_questions_version_module_position", "exam_version_id", "module_id", "position"),
    )
