# exam_api/models/scores.py
# 채점 결과. 한 attempt에 대해 같은 트랜잭션에서 정확히 한 번만 생성된다.
from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint, func
from exam_api.db.base import Base, IdType

class AttemptAnswerScore(Base):
    __tablename__ = "attempt_answer_scores"

    id = Column(IdType, primary_key=True, index=True)
    attempt_item_id = Column(IdType, ForeignKey("attempt_items.id"), nullable=False, unique=True)
    is_correct = Column(Boolean, nullable=False)
    points_awarded = Column(Integer, nullable=False)
    scored_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AttemptModuleScore(Base):
    __tablename__ = "attempt_module_scores"

    id = Column(IdType, primary_key=True, index=True)
    attempt_id = Column(IdType, ForeignKey("attempts.id"), nullable=False, index=True)
    module_id = Column(IdType, ForeignKey("exam_modules.id"), nullable=False)
    raw_score = Column(Integer, nullable=False)
    max_score = Column(Integer, nullable=False)
    scored_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("attempt_id", "module_id", name="uq_attempt_module_scores_attempt_module"),
    )


class AttemptScore(Base):
    __tablename__ = "attempt_scores"

    attempt_id = Column(IdType, ForeignKey("attempts.id"), primary_key=True)  # 1:1 with attempts.id
    raw_score = Column(Integer, nullable=False)
    max_score = Column(Integer, nullable=False)
    scored_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
