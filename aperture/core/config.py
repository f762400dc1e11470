from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 8000
    APP_NAME: str = "Aperture"
    APP_ENV: Literal["development", "production", "test"] = "production"
    LOG_LEVEL: str = "INFO"

    # Fallback pipeline weights, used only when the config source is unreachable
    DEFAULT_MAX_CANDIDATES: int = 50000
    DEFAULT_SELECTED_COUNT: int = 50
    DEFAULT_SIMILARITY_WEIGHT: float = 0.4
    DEFAULT_NOVELTY_WEIGHT: float = 0.2
    DEFAULT_RATING_WEIGHT: float = 0.2
    DEFAULT_DIVERSITY_WEIGHT: float = 0.2
    DEFAULT_RECENT_WATCH_LIMIT: int = 50
    CONFIG_FALLBACK_ENABLED: bool = True

    # Scored candidates persisted per run (selected items beyond this are always added)
    STORED_CANDIDATE_LIMIT: int = 100
    EVIDENCE_LIMIT: int = 3


settings = Settings()
