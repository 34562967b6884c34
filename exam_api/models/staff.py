# exam_api/models/staff.py
from sqlalchemy import Column, Boolean, String, DateTime, JSON, func
from exam_api.db.base import Base, IdType

class StaffUser(Base):
    __tablename__ = "staff_users"

    id = Column(IdType, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    display_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    roles = Column(JSON, nullable=False, default=list)  # ["ADMIN", "PROCTOR", ...]
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Device(Base):
    # 시험장 등록 단말. 이어하기(resume) 시 새 단말을 지정할 때 사용
    __tablename__ = "devices"

    id = Column(IdType, primary_key=True, index=True)
    label = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
