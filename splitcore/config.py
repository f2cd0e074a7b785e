"""Configuration management"""

import logging
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Split Core"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: Optional[str] = None
    db_pool_size: int = 20
    db_max_overflow: int = 10

    # Allocation
    percentage_tolerance: Decimal = Decimal("0.01")
    amount_precision: int = 2

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known logging level name"""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"LOG_LEVEL must be a logging level name, got {v}")
        return level

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate database URL starts with postgresql"""
        if v is not None and not v.startswith("postgresql"):
            raise ValueError("DATABASE_URL must be a PostgreSQL connection string")
        return v

    @field_validator("percentage_tolerance")
    @classmethod
    def validate_percentage_tolerance(cls, v: Decimal) -> Decimal:
        """Validate percentage tolerance is non-negative"""
        if v < 0:
            raise ValueError("PERCENTAGE_TOLERANCE cannot be negative")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
