from pydantic_settings import BaseSettings
from typing import Literal, Optional


class Settings(BaseSettings):
    APP_NAME: str = "IEU Course Scheduler"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Scheduling backend
    BACKEND_URL: str = "http://localhost:3000"
    REQUEST_TIMEOUT: Optional[float] = None

    # Signed cookie holding accessToken / dashboardStep
    SESSION_SECRET: str = "change-me"
    SESSION_COOKIE: str = "scheduler_session"

    # Wizard defaults
    DEFAULT_CAPACITY: int = 45
    PRIORITY_COURSE_PREFIX: str = "SE"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()


def get_settings() -> Settings:
    return settings
