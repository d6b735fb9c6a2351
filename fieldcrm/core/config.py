"""
FieldCRM Application Configuration
Loads settings from .env file using Pydantic v2 with BaseSettings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ==================== Project Info ====================
    PROJECT_NAME: str = "FieldCRM API"
    PROJECT_DESCRIPTION: str = "Field-sales CRM - lead lifecycle, assignment and customer conversion"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    # ==================== Database ====================
    DATABASE_URL: str = "sqlite:///fieldcrm_local.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_RECYCLE: int = 3600

    # ==================== Security & Authentication ====================
    SECRET_KEY: str = "change-this-secret-key-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 10080  # 7 days

    # ==================== CORS ====================
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:8081",
        "http://localhost:19006",
    ]

    # ==================== Lead Engine ====================
    # True: reassign() only succeeds while the lead still belongs to from_operator_id
    STRICT_REASSIGNMENT: bool = False
    CUSTOMER_ID_WIDTH: int = 3

    # ==================== Pagination ====================
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 500

    # ==================== Features ====================
    DEBUG: bool = False
    TESTING: bool = False
    LOG_LEVEL: str = "INFO"

    # ==================== Configuration Loading ====================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",
        validate_default=True,
    )

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.lower().startswith("sqlite")


# ==================== Settings Singleton ====================
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()


def is_development() -> bool:
    """Check if running in development"""
    return settings.DEBUG


def is_testing() -> bool:
    """Check if running in testing mode"""
    return settings.TESTING
