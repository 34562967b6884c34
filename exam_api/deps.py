# exam_api/deps.py
import logging

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from exam_api.db.base import SessionLocal
from exam_api.models.enums import StaffRole
from exam_api.services.errors import AttemptError
from exam_api.services.staff_auth import resolve_staff_user, verify_bearer

logger = logging.getLogger(__name__)

# ----------------------------
# DB 세션 (요청 1건 = 트랜잭션 1건)
# ----------------------------
def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()  # commit 포함
    except Exception:
        db.rollback()  # 전제조건 실패 시 부분 반영 없음
        raise
    finally:
        db.close()

# ----------------------------
# 스태프 인증 + 역할 확인
# ----------------------------
def require_staff(*roles: StaffRole):
    """
    사용 예: staff = Depends(require_staff(StaffRole.ADMIN, StaffRole.PROCTOR))
    """
    def _dependency(
        authorization: str | None = Header(None),
        db: Session = Depends(get_db),
    ):
        try:
            claims = verify_bearer(authorization)
            staff = resolve_staff_user(db, claims["staff_user_id"], roles)
        except AttemptError as e:
            logger.warning("[AUTH] staff rejected: %s", e.message)
            raise HTTPException(status_code=e.status_code, detail=e.code)

        return {
            "id": staff.id,
            "email": staff.email,
            "roles": list(staff.roles or []),
        }

    return _dependency
