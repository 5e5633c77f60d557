"""
Centralized Configuration System
Environment-aware settings for the deal store, playbook assist and logging.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow"
    )
    """
    Loads from environment variables with sensible defaults.
    The diagnosis engine itself is not configurable; these settings only
    drive the collaborators around it.
    """

    # ============================================
    # OPENAI CONFIGURATION
    # ============================================
    openai_api_key: Optional[str] = None  # Playbook assist falls back to templates without it

    # ============================================
    # PLAYBOOK ASSIST
    # ============================================
    playbook_model: str = "openai:gpt-4o-mini"
    default_tone: Literal["direct", "supportive", "executive"] = "direct"
    default_channel: Literal["email", "call", "linkedin"] = "email"

    # ============================================
    # RETRIES
    # ============================================
    max_retries: int = 3
    retry_min_wait_seconds: int = 2
    retry_max_wait_seconds: int = 10

    # ============================================
    # DEAL STORE
    # ============================================
    seed_sample_deals: bool = True

    # ============================================
    # LOGGING
    # ============================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    enable_structured_logging: bool = False  # Set to True for production JSON logs

    # ============================================
    # ENVIRONMENT
    # ============================================
    environment: Literal["development", "test", "staging", "production"] = "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Singleton pattern for settings.
    Uses LRU cache to ensure only one Settings instance exists.
    """
    return Settings()
