from decimal import Decimal
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Carbon Credit Marketplace"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    API_PREFIX: str = "/api"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Storage
    STORAGE_BACKEND: str = "memory"  # memory | sqlite
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/carbon_credits.db"

    # Auth
    JWT_SECRET: str = "dev-secret-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Bootstrap system administrator
    BOOTSTRAP_ADMIN_USERNAME: str = "admin"
    BOOTSTRAP_ADMIN_PASSWORD: str = "admin123"
    BOOTSTRAP_ADMIN_NAME: str = "System Admin"

    # Ledger
    STARTING_VIRTUAL_BALANCE: Decimal = Decimal("1000")
    MAX_COMMUTE_DISTANCE: Decimal = Decimal("200")

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
