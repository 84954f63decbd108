"""Application configuration settings."""

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .. import __version__


DEFAULT_ALLOWED_EXTENSIONS = [
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".svg", ".ico"
]
DEFAULT_MAX_FILE_SIZE = 2 * 1024 * 1024


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"
    log_to_file: bool = True
    file_path: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="GITSHELF_LOG_")


class UploadSettings(BaseSettings):
    """Limits enforced before any file is written to the remote store."""

    allowed_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_EXTENSIONS))
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    model_config = SettingsConfigDict(env_prefix="GITSHELF_UPLOAD_")

    @field_validator("allowed_extensions")
    @classmethod
    def normalize_extensions(cls, v):
        normalized = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        return normalized

    @field_validator("max_file_size")
    @classmethod
    def validate_max_file_size(cls, v):
        if v < 1:
            raise ValueError("max_file_size must be positive")
        return v


class RemoteSettings(BaseSettings):
    """Remote object store configuration."""

    backend: str = "github"
    api_base_url: str = "https://api.github.com"
    timeout_seconds: float = 30.0
    release_repo: str = "gitshelf/gitshelf"

    model_config = SettingsConfigDict(env_prefix="GITSHELF_REMOTE_")


class ServerSettings(BaseSettings):
    """Local HTTP API configuration."""

    host: str = "127.0.0.1"
    port: int = 8765

    model_config = SettingsConfigDict(env_prefix="GITSHELF_SERVER_")


class AppSettings(BaseSettings):
    """Main application settings."""

    name: str = "gitshelf"
    version: str = __version__
    environment: str = "development"
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".gitshelf")

    # Sub-settings
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    remote: RemoteSettings = Field(default_factory=RemoteSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    model_config = SettingsConfigDict(
        env_prefix="GITSHELF_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def config_file(self) -> Path:
        return self.data_dir / "config.json"

    @property
    def cache_file(self) -> Path:
        return self.data_dir / "database.json"

    @property
    def log_file(self) -> Path:
        return self.data_dir / f"{self.name}.log"

    def ensure_data_dir(self) -> Path:
        """Create the data directory if it does not exist yet."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir


_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get application settings."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reset_settings(settings: Optional[AppSettings] = None) -> None:
    """Replace the cached settings instance (``None`` reloads on next access)."""
    global _settings
    _settings = settings
