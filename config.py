from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./tunecircle.db"

    # JWT Authentication
    SECRET_KEY: str = "supersecretkey"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    # Web push (VAPID). Push is disabled unless both keys are set.
    WEB_PUSH_PUBLIC_KEY: Optional[str] = None
    WEB_PUSH_PRIVATE_KEY: Optional[str] = None
    WEB_PUSH_SUBJECT: str = "mailto:admin@example.com"
    PUSH_MAX_WORKERS: int = 8

    # Links and avatars
    SITE_URL: str = "http://localhost:5173"
    AVATAR_BASE_URL: Optional[str] = None

    # Seed accounts that follow every new user once
    SEED_ACCOUNT_EMAILS: list[str] = []

    # Notification / presence / feed tuning
    PRESENCE_INACTIVITY_SECONDS: int = 120
    TRENDING_THRESHOLDS: list[int] = [5, 10, 25]
    FEED_DEFAULT_LIMIT: int = 20

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra='ignore')

    @property
    def web_push_configured(self) -> bool:
        return bool(self.WEB_PUSH_PUBLIC_KEY and self.WEB_PUSH_PRIVATE_KEY)


settings = Settings()
