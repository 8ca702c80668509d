"""Configuration management for the matching service."""

import logging
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration from environment variables."""

    # Required
    supabase_url: str
    supabase_key: str

    # Reasoning service (absent key -> local rule-based reasoning only)
    openai_api_key: Optional[str] = None
    reasoning_model: str = "gpt-4o-mini"
    assistant_model: str = "gpt-4o"
    vector_store_id: Optional[str] = None
    assistant_id: Optional[str] = None

    # Timeouts and polling (seconds)
    item_timeout: float = Field(30.0, gt=0)
    corpus_search_timeout: float = Field(150.0, gt=0)
    run_poll_interval: float = Field(2.0, ge=0)
    run_max_wait: float = Field(120.0, gt=0)
    corpus_poll_interval: float = Field(5.0, ge=0)
    corpus_max_wait: float = Field(300.0, gt=0)

    # Batch reasoning
    batch_size: int = Field(5, ge=1)
    batch_delay_seconds: float = Field(0.1, ge=0)

    # Corpus refresh
    corpus_refresh_hour: int = Field(2, ge=0, le=23)
    corpus_export_dir: str = "uploads"

    # Optional overrides
    weights_path: Optional[str] = None
    lexicon_path: Optional[str] = None
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "case_sensitive": False}

    @field_validator("log_level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


def validate_config() -> Config:
    """Load and validate configuration from environment.

    Raises ValueError with descriptive message listing ALL missing
    required variables (not just the first one).
    """
    try:
        return Config()  # type: ignore[call-arg]
    except ValidationError as exc:
        missing = [
            str(err["loc"][0]).upper()
            for err in exc.errors()
            if err["type"] == "missing" and err["loc"]
        ]
        if missing:
            names = ", ".join(missing)
            raise ValueError(
                f"Missing required environment variable(s): {names}. "
                "Please set them in your .env file or environment."
            ) from exc
        raise


def load_config() -> Config:
    """Load configuration from environment (startup entry point)."""
    return validate_config()
