"""
Configuration Management for the DermAir risk engine

Environment-based configuration using Pydantic Settings.
"""
from typing import Optional, List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = "DermAir Risk Engine"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # API Configuration
    api_prefix: str = "/api/v1"
    cors_origins: List[str] = ["*"]

    # Generative model
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API key")
    gemini_model: str = "gemini-2.5-flash"
    llm_enabled: bool = Field(default=True, description="Try the generative strategy before the rule-based one")
    llm_timeout_seconds: float = Field(default=15.0, gt=0, description="Upper bound for a single model call")
    llm_temperature: float = 0.7

    # Windows
    history_window_days: int = Field(default=7, ge=1, description="Days of check-ins fed to risk assessment")
    trend_window_days: int = Field(default=30, ge=1, description="Default window for trend analysis")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
