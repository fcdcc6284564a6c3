"""Client settings and configuration."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_API_URL = "http://localhost:8000/api"


def get_default_data_dir() -> Path:
    """Return the default local data directory."""
    return Path.home() / ".tradejournal"


class Settings(BaseSettings):
    """Client configuration loaded from TRADEJOURNAL_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRADEJOURNAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Trade Journal"
    app_version: str = "0.1.0"

    # Gateway
    api_url: str = DEFAULT_API_URL
    request_timeout_seconds: float = 30.0

    # Query cache behavior
    default_stale_seconds: float = 60.0
    session_stale_seconds: float = 60.0
    query_retry: int = 2
    retry_base_delay_seconds: float = 0.5
    retry_max_delay_seconds: float = 8.0

    log_level: str = "INFO"

    # Local transcript store (offline fallback for chat threads)
    data_dir: Optional[Path] = None
    database_url: Optional[str] = None
    transcript_store_enabled: bool = False

    # Development stub backend
    stub_backend_port: int = 8001

    def get_api_url(self) -> str:
        """Base URL without a trailing slash."""
        return self.api_url.rstrip("/")

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "transcripts.db"
        return f"sqlite:///{db_path}"


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
