# exam_api/db/session.py
# SQLAlchemy 기본 세팅. DB URL은 .env의 DATABASE_URL을 사용.

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from exam_api.config import settings  # Settings() 인스턴스

# 운영: postgresql+psycopg2://... / 테스트: sqlite://
DATABASE_URL = settings.database_url

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL 환경변수가 설정되어 있지 않습니다.")


def _engine_options(url: str) -> dict:
    # SQLite는 커넥션 풀 옵션을 받지 않는다
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,              # 끊어진 커넥션 자동 감지
        "pool_size": settings.db_pool_size,
        "max_overflow": 0,                  # 풀 크기 초과 연결 금지
        "pool_timeout": 30,                 # 풀 고갈 시 대기 시간(초) 후 Timeout
    }


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
