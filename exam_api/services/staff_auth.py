# exam_api/services/staff_auth.py
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from exam_api.config import settings
from exam_api.models.enums import StaffRole
from exam_api.models.staff import StaffUser
from exam_api.services.errors import ForbiddenError, UnauthorizedError

STAFF_JWT_SECRET = settings.staff_jwt_secret

if not STAFF_JWT_SECRET:
    raise RuntimeError("STAFF_JWT_SECRET 환경변수가 설정되어 있지 않습니다.")


def issue_staff_token(staff_user_id: int, minutes: int | None = None) -> str:
    # Access Token 생성 (유효기간: 분 단위)
    now = datetime.now(timezone.utc)
    lifetime = minutes if minutes is not None else settings.staff_token_minutes
    payload = {
        "sub": str(staff_user_id),
        "type": "staff",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=lifetime)).timestamp()),
    }
    return jwt.encode(payload, STAFF_JWT_SECRET, algorithm=settings.staff_jwt_algorithm)


def verify_bearer(authorization: str | None) -> Dict[str, str]:
    """
    - Authorization: Bearer <token> 헤더에서 토큰을 꺼내서
    - HS256 시크릿으로 검증하고
    - 스태프 식별자(sub)를 반환한다.
    """
    if not authorization:
        raise UnauthorizedError(message="missing Authorization header")

    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise UnauthorizedError(message="invalid Authorization header")

    token = parts[1].strip()
    if not token:
        raise UnauthorizedError(message="invalid Authorization header")

    try:
        claims = jwt.decode(token, STAFF_JWT_SECRET, algorithms=[settings.staff_jwt_algorithm])
    except JWTError as e:
        raise UnauthorizedError(message="invalid token") from e

    if claims.get("type") != "staff" or not claims.get("sub"):
        raise UnauthorizedError(message="invalid token: missing sub")

    return {"staff_user_id": claims["sub"]}


def has_required_role(staff_roles: Iterable[str], required_roles: Iterable[StaffRole]) -> bool:
    owned = set(staff_roles or [])
    return any(role.value in owned for role in required_roles)


def resolve_staff_user(db: Session, staff_user_id: str, required_roles: Iterable[StaffRole]) -> StaffUser:
    try:
        staff = db.get(StaffUser, int(staff_user_id))
    except ValueError:
        staff = None

    if staff is None or not staff.is_active:
        raise UnauthorizedError(message="staff user not found or inactive")

    if not has_required_role(staff.roles, required_roles):
        raise ForbiddenError()

    return staff
