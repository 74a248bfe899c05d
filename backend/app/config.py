from __future__ import annotations

import os

APP_VERSION = "1.0.0"

_DEFAULT_SECRET_KEYS = frozenset({"change-me-in-production", ""})


class Settings:
    PROJECT_NAME: str = "Study Abroad Admin"
    API_V1_PREFIX: str = "/api/v1"

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "localhost")
    POSTGRES_PORT: str = os.getenv("POSTGRES_PORT", "5432")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "studyabroad")
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "studyabroad")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "studyabroad")

    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    RESET_DB: bool = os.getenv("RESET_DB", "").lower() in ("1", "true", "yes")

    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me-in-production")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

    ALLOWED_ORIGINS: list[str] = [
        o.strip()
        for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
        if o.strip()
    ]

    # Default admin created at startup when no admin account exists yet
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")

    # Dynamic table rendering
    TABLE_PAGE_SIZE: int = int(os.getenv("TABLE_PAGE_SIZE", "10"))
    DATE_DISPLAY_FORMAT: str = os.getenv("DATE_DISPLAY_FORMAT", "{month}/{day}/{year}")

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


settings = Settings()
