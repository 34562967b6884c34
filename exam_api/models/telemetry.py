# exam_api/models/telemetry.py
# 행동 계측 이벤트 로그(append-only)와 문항별 파생 지표
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum, JSON, Index, func
from exam_api.db.base import Base, IdType
from exam_api.models.enums import TelemetryEventType

class AttemptItemEvent(Base):
    __tablename__ = "attempt_item_events"

    id = Column(IdType, primary_key=True, index=True)
    attempt_id = Column(IdType, ForeignKey("attempts.id"), nullable=False, index=True)
    attempt_item_id = Column(IdType, ForeignKey("attempt_items.id"), nullable=True)
    event_type = Column(
        Enum(TelemetryEventType, name="telemetry_event_type", native_enum=False),
        nullable=False,
    )
    server_time = Column(DateTime(timezone=True), nullable=False)  # 집계 기준 시각
    client_time = Column(DateTime(timezone=True), nullable=True)   # 참고용. 집계에 쓰지 않음
    metadata_json = Column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_attempt_item_events_item_server_time", "attempt_item_id", "server_time"),
    )


class AttemptItemMetric(Base):
    # 이벤트 로그에서 언제든 다시 계산 가능한 파생 데이터
    __tablename__ = "attempt_item_metrics"

    attempt_item_id = Column(IdType, ForeignKey("attempt_items.id"), primary_key=True)
    observed_seconds = Column(Integer, nullable=False, default=0)
    active_seconds = Column(Integer, nullable=False, default=0)
    view_count = Column(Integer, nullable=False, default=0)
    answer_change_count = Column(Integer, nullable=False, default=0)
    computed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
