# app/config.py
from pydantic_settings import BaseSettings
from typing import Optional
from pydantic import Field

class Settings(BaseSettings):
    SECRET_KEY: str = Field("change-me-in-production")
    ALGORITHM: str = Field("HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 12)

    DATABASE_URL: str = Field("sqlite+aiosqlite:///./gym_attendance.db")
    SQLALCHEMY_DATABASE_URL: Optional[str] = None
    DB_ECHO: bool = Field(False)

    # Open sessions older than this are closed lazily with exit_type="auto"
    SESSION_STALE_AFTER_HOURS: float = Field(3)
    # Calendar used for "today" / "yesterday" windows
    ATTENDANCE_TIMEZONE: str = Field("UTC")

    QR_SECRET_LENGTH: int = Field(32)
    HISTORY_DEFAULT_LIMIT: int = Field(30)

    LOG_LEVEL: str = Field("INFO")

    model_config = {
        "env_file": ".env",
        "extra": "allow",
    }

    @property
    def effective_database_url(self) -> str:
        return self.SQLALCHEMY_DATABASE_URL or self.DATABASE_URL

settings = Settings()
