# exam_api/main.py

# ------------------------
# 환경 변수 로드
# ------------------------
from dotenv import load_dotenv
load_dotenv()

import logging

# ------------------------
# FastAPI, CORS 미들웨어 import
# ------------------------
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from exam_api.config import settings
from exam_api.db.base import engine
from exam_api.db.models import Base  # 전체 테이블 등록

# ------------------------
# 라우터 import
# ------------------------
from exam_api.routers import candidate as candidate_router
from exam_api.routers import staff_attempts as staff_attempts_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# ------------------------
# 1) 개발용 테이블 자동 생성
#    - 운영에서는 마이그레이션으로 관리
# ------------------------
if settings.db_auto_create:
    Base.metadata.create_all(bind=engine)

# ------------------------
# 2) FastAPI 앱 생성
# ------------------------
app = FastAPI(title="Aptitude Exam API")

# ------------------------
# 3) CORS 미들웨어 추가
#    - 개발용 전체 허용
#    - 실제 운영 시 도메인 제한 필요
# ------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],      # 개발용 전체 허용
    allow_credentials=False,  # 쿠키 안 쓰면 False
    allow_methods=["*"],
    allow_headers=["*"],
)

# ------------------------
# 4) 라우터 등록
# ------------------------
app.include_router(candidate_router.router)
app.include_router(staff_attempts_router.router)

# ------------------------
# 5) Root 엔드포인트 (health check)
# ------------------------
@app.get("/")
def root():
    return {"ok": True}
