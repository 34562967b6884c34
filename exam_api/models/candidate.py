# exam_api/models/candidate.py
# 수험자 / 수험표(ticket). 발급은 외부 관리 화면에서 처리하고 여기서는 읽기만 한다.
from sqlalchemy import Column, String, DateTime, ForeignKey, Enum, func
from exam_api.db.base import Base, IdType
from exam_api.models.enums import TicketStatus

class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(IdType, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(IdType, primary_key=True, index=True)
    ticket_code = Column(String(64), nullable=False, unique=True, index=True)
    candidate_id = Column(IdType, ForeignKey("candidates.id"), nullable=False, index=True)
    exam_version_id = Column(IdType, ForeignKey("exam_versions.id"), nullable=False)
    pin_hash = Column(String(255), nullable=False)
    status = Column(
        Enum(TicketStatus, name="ticket_status", native_enum=False),
        nullable=False,
        default=TicketStatus.ACTIVE,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())
