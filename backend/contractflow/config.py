from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Database - Handle Heroku/Render style postgres:// URLs
    DATABASE_URL: str = "sqlite:///./contractflow.db"

    APP_NAME: str = "Contract Lifecycle Manager"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # CORS - comma-separated list of origins
    CORS_ORIGINS: str = "http://localhost:3000"

    # Request bodies are JSON only; nothing here needs more than this
    MAX_BODY_SIZE: int = 1024 * 1024  # 1MB

    # Rate limits
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    API_RATE_LIMIT: str = "60/minute"

    # Alembic upgrade head on startup
    RUN_MIGRATIONS_ON_STARTUP: bool = False

    # Error Tracking (Sentry)
    SENTRY_DSN: Optional[str] = None

    @property
    def database_url_fixed(self) -> str:
        """Fix postgres:// to postgresql:// for SQLAlchemy"""
        url = self.DATABASE_URL
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url

    @property
    def cors_origins_list(self) -> list:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
