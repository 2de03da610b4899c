"""Configuration management for the Hollow Knight save editor."""

import os
from dataclasses import dataclass
from typing import Optional

# Load .env file for local development
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    # dotenv not installed, that's fine for production
    pass


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AppConfig:
    """Application configuration settings."""

    host: str = "0.0.0.0"
    port: int = 8000
    database_path: str = "hollow_save.sqlite3"
    history_key: str = "history"
    history_quota_bytes: int = 5 * 1024 * 1024
    strict_envelope: bool = True
    log_level: str = "INFO"
    log_file: Optional[str] = None
    max_upload_bytes: int = 16 * 1024 * 1024

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            database_path=os.getenv("DATABASE_PATH", "hollow_save.sqlite3"),
            history_key=os.getenv("HISTORY_KEY", "history"),
            history_quota_bytes=int(os.getenv("HISTORY_QUOTA_BYTES", str(5 * 1024 * 1024))),
            strict_envelope=_env_bool("STRICT_ENVELOPE", True),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(16 * 1024 * 1024))),
        )

    def validate(self) -> None:
        """Validate configuration values."""
        if not 1 <= self.port <= 65535:
            raise ValueError("port must be between 1 and 65535")

        if self.history_quota_bytes < 1:
            raise ValueError("history_quota_bytes must be at least 1")

        if self.max_upload_bytes < 1:
            raise ValueError("max_upload_bytes must be at least 1")

        if not self.history_key:
            raise ValueError("history_key cannot be empty")

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_log_levels:
            raise ValueError(f"log_level must be one of {valid_log_levels}")


# Global configuration instance
config = AppConfig.from_env()
config.validate()
