"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """Multimodal completion provider configuration."""

    model_config = SettingsConfigDict(env_prefix="LLM_")

    api_key: str | None = None
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "google/gemini-2.0-flash-exp:free"
    timeout: int = 90
    max_tokens: int = 4000
    temperature: float = 0.1

    # Attribution headers expected by OpenRouter
    referer: str = "https://treqy.lovable.app"
    app_title: str = "Treqy Material Library"

    # Circuit breaker settings
    failure_threshold: int = 3
    cooldown_seconds: int = 60


class ExtractionSettings(BaseSettings):
    """Caller-side retry policy around the extraction call."""

    model_config = SettingsConfigDict(env_prefix="EXTRACTION_")

    max_attempts: int = Field(default=1, ge=1)
    retry_delay: float = 2.0
    retry_multiplier: float = 2.0


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "treqy.db"
    objects_dir_name: str = "objects"
    public_base_url: str = "/files"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name

    @property
    def objects_dir(self) -> Path:
        return self.data_dir / self.objects_dir_name


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]

    # Upload limits
    max_upload_size: int = 50 * 1024 * 1024  # 50 MB


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Treqy Material Extraction"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
