# exam_api/models/question.py
# 단일 정답 객관식 문항. "정답 1개" 제약은 문항 작성 시점에 보장된다.
from sqlalchemy import Column, Integer, Boolean, Text, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import relationship
from exam_api.db.base import Base, IdType

class Question(Base):
    __tablename__ = "questions"

    id = Column(IdType, primary_key=True, index=True)
    stem = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    options = relationship(
        "QuestionOption",
        back_populates="question",
        order_by="QuestionOption.position",
        lazy="selectin",
    )


class QuestionOption(Base):
    __tablename__ = "question_options"

    id = Column(IdType, primary_key=True, index=True)
    question_id = Column(IdType, ForeignKey("questions.id"), nullable=False)
    position = Column(Integer, nullable=False)
    option_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)

    question = relationship("Question", back_populates="options")

    __table_args__ = (
        Index("ix_question_options_question_id_position", "question_id", "position"),
    )
