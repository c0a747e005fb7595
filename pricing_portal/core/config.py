from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # DB
    DATABASE_URL: str = "sqlite:///./database.db"

    # Identity provider JWT verification
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Identity provider admin API
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    IDENTITY_TIMEOUT_SECONDS: float = 15.0

    # Where password-setup links send the user back to
    SITE_URL: str = "http://localhost:3001"

    # Read cache staleness window
    CACHE_STALE_SECONDS: int = 300

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
