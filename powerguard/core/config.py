"""
Configuration module - centralized settings for the query pipeline.
Uses pydantic-settings to load values from environment variables and .env file.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Pipeline settings loaded from environment variables.

    Pydantic-settings automatically:
    1. Reads from environment variables (highest priority)
    2. Falls back to .env file values
    3. Uses default values if neither exists

    To override in production, set environment variables:
        export LLM_PROVIDER=openai
        export OPENAI_API_KEY=sk-...
        export SYNTHESIS_TIMEOUT_SECONDS=5
    """

    # ---------------------------------------------------------------------------
    # PYDANTIC SETTINGS CONFIGURATION
    # ---------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ---------------------------------------------------------------------------
    # APPLICATION SETTINGS
    # ---------------------------------------------------------------------------
    APP_NAME: str = "PowerGuard Query Pipeline"

    # DEBUG: Logs full prompts and raw model payloads when enabled
    DEBUG: bool = False

    # LOG_LEVEL: Level for the "powerguard" logger hierarchy
    LOG_LEVEL: str = "INFO"

    # ---------------------------------------------------------------------------
    # LANGUAGE-MODEL PROVIDER SETTINGS
    # ---------------------------------------------------------------------------
    # LLM_PROVIDER: Which backend answers prompts
    # - gemini / openai / anthropic: online models
    # - offline: no model at all, every query takes the offline fallback path
    LLM_PROVIDER: str = "gemini"

    GEMINI_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    ANTHROPIC_API_KEY: str = ""

    GEMINI_MODEL: str = "gemini-2.5-flash"
    OPENAI_MODEL: str = "gpt-4o-mini"
    ANTHROPIC_MODEL: str = "claude-3-5-haiku-latest"

    # Per-request timeout handed to the provider SDKs (seconds)
    AI_REQUEST_TIMEOUT: int = 30

    # ---------------------------------------------------------------------------
    # PIPELINE BUDGETS
    # ---------------------------------------------------------------------------
    # CLASSIFICATION_TIMEOUT_SECONDS: Past this the keyword rules take over
    CLASSIFICATION_TIMEOUT_SECONDS: float = 6.0

    # SYNTHESIS_TIMEOUT_SECONDS: Past this the in-flight model call is cancelled
    # and the query goes to the offline fallback. Never retried.
    SYNTHESIS_TIMEOUT_SECONDS: float = 8.0

    # Token budget and sampling temperature for the recommendation call
    SYNTHESIS_MAX_TOKENS: int = 1024
    SYNTHESIS_TEMPERATURE: float = 0.2

    # ---------------------------------------------------------------------------
    # DETERMINISTIC SYNTHESIS DEFAULTS
    # ---------------------------------------------------------------------------
    # Used when a monitoring query names a resource but no number
    DEFAULT_BATTERY_ALERT_PERCENT: int = 20
    DEFAULT_DATA_ALERT_MB: int = 1000

    # N for "top N" information answers when the user gives none
    DEFAULT_TOP_N: int = 3

    # How many apps the optimization synthesis restricts
    OPTIMIZATION_TOP_N: int = 3


# ---------------------------------------------------------------------------
# GLOBAL SETTINGS INSTANCE
# ---------------------------------------------------------------------------
# Usage: from powerguard.core.config import settings
settings = Settings()
