# exam_api/config.py


from dotenv import load_dotenv
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()  # .env 파일 먼저 읽기

BASE_DIR = Path(__file__).resolve().parent.parent

class Settings(BaseSettings):
    # 환경 구분
    app_env: str = "local"
    log_level: str = "INFO"

    # DB 필수 설정
    database_url: str                        # DATABASE_URL
    db_pool_size: int = 30                   # DB_POOL_SIZE
    db_auto_create: bool = False             # DB_AUTO_CREATE (개발용 테이블 자동 생성)

    # 스태프 토큰
    staff_jwt_secret: str                    # STAFF_JWT_SECRET
    staff_jwt_algorithm: str = "HS256"
    staff_token_minutes: int = 480

    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),  # 루트 .env 절대경로
        env_file_encoding="utf-8",
        extra="ignore",                   # 필요 없는 env 무시
    )

settings = Settings()

if __name__ == "__main__":
    print("BASE_DIR:", BASE_DIR)
    print("APP_ENV:", settings.app_env)
    print("DATABASE_URL:", settings.database_url)
