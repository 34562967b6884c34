# exam_api/services/errors.py
"""
시험 응시(Attempt) 도메인 예외.
- 서비스 계층은 HTTP를 모르고 이 예외만 던진다.
- 라우터에서 status_code / detail 코드로 변환한다 (raise_http 참고).
"""
from fastapi import HTTPException


class AttemptError(Exception):
    status_code = 400
    code = "attempt_error"

    def __init__(self, code: str | None = None, message: str | None = None):
        if code is not None:
            self.code = code
        self.message = message or self.code
        super().__init__(self.message)


# (a) 인증/권한 실패
class UnauthorizedError(AttemptError):
    status_code = 401
    code = "unauthorized"


class ForbiddenError(AttemptError):
    status_code = 403
    code = "forbidden"


# 대상 행이 없음 (attempt / attempt item / module timer / device)
class NotFoundError(AttemptError):
    status_code = 404
    code = "not_found"


# (b) 상태 전이 조건 불만족
class InvalidStateError(AttemptError):
    status_code = 409
    code = "invalid_state"

    def __init__(self, current=None, target=None, message: str | None = None):
        self.current = current
        self.target = target
        if message is None and current is not None:
            message = f"cannot move attempt from {_value(current)} to {_value(target)}"
        super().__init__(message=message)


# (c) 멱등 가드. 오류라기보다 "이미 처리됨"
class AlreadyScoredError(AttemptError):
    status_code = 409
    code = "already_scored"


# (d) 데이터 정합성 위반 (다른 문항의 보기, 음수 경과시간 등)
class DataIntegrityError(AttemptError):
    status_code = 422
    code = "data_integrity"


def _value(status):
    return getattr(status, "value", status)


def raise_http(err: AttemptError):
    raise HTTPException(status_code=err.status_code, detail=err.code) from err
