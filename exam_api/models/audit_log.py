# exam_api/models/audit_log.py
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Index, func
from exam_api.db.base import Base, IdType

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(IdType, primary_key=True, index=True)
    actor_staff_user_id = Column(IdType, ForeignKey("staff_users.id"), nullable=True)
    action = Column(String(50), nullable=False)  # ATTEMPT_LOCKED|ATTEMPT_RESUMED|...
    entity_type = Column(String(30), nullable=True)
    entity_id = Column(String(64), nullable=True)
    metadata_json = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )
