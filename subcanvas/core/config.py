from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # 서버
    PORT: int = 3000
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]
    LOG_LEVEL: str = "INFO"
    # 프록시 뒤에서 동작할 때만 X-Forwarded-For 를 방문자 IP로 신뢰
    TRUST_PROXY_HEADERS: bool = False

    # DB (로컬 개발은 SQLite, 운영은 postgresql+asyncpg://...)
    DATABASE_URL: str = "sqlite+aiosqlite:///./subcanvas.db"

    # JWT
    JWT_SECRET_KEY: str = "subcanvas-local-secret"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # 업로드
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # Supabase Storage (1순위)
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_KEY: str | None = None
    SUPABASE_BUCKET_NAME: str = "subcanvas-storage"

    # AWS S3 (2순위)
    AWS_REGION: str | None = None
    AWS_ACCESS_KEY_ID: str | None = None
    AWS_SECRET_ACCESS_KEY: str | None = None
    AWS_S3_BUCKET: str | None = None

    # 소셜 로그인
    KAKAO_CLIENT_ID: str | None = None
    KAKAO_CLIENT_SECRET: str | None = None
    KAKAO_REDIRECT_URI: str | None = None

    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None
    GOOGLE_REDIRECT_URI: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def supabase_enabled(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_KEY)

    @property
    def s3_enabled(self) -> bool:
        return bool(
            self.AWS_REGION
            and self.AWS_ACCESS_KEY_ID
            and self.AWS_SECRET_ACCESS_KEY
            and self.AWS_S3_BUCKET
        )

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
