"""Configuration loader for the Git repository settings file."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from .schema import GitConfig
from ..utils.logging import LoggerMixin


ENV_OVERRIDES = {
    "GITSHELF_GIT_OWNER": "owner",
    "GITSHELF_GIT_REPO": "repo",
    "GITSHELF_GIT_BRANCH": "branch",
    "GITSHELF_GIT_TOKEN": "token",
}


class ConfigurationError(Exception):
    """Raised when configuration loading or saving fails."""
    pass


class GitConfigLoader(LoggerMixin):
    """Loads, validates and saves the ``GitConfig`` file."""

    def __init__(self, file_path: Union[str, Path]):
        self.file_path = Path(file_path)

    def exists(self) -> bool:
        return self.file_path.is_file()

    def load(self) -> GitConfig:
        """Load configuration from the JSON or YAML file.

        A missing or empty file yields an empty (incomplete) ``GitConfig``.

        Raises:
            ConfigurationError: If the file cannot be read or validated
        """
        if not self.exists():
            self.logger.info("No git configuration found", file_path=str(self.file_path))
            return self.load_from_dict({})

        try:
            text = self.file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration: {e}") from e

        if not text.strip():
            return self.load_from_dict({})

        try:
            if self.file_path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(text)
            else:
                data = json.loads(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML format: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON format: {e}") from e

        config = self.load_from_dict(data)
        self.logger.info(
            "Git configuration loaded",
            file_path=str(self.file_path),
            repository=config.full_name,
            complete=config.is_complete
        )
        return config

    def load_from_dict(self, data: Any) -> GitConfig:
        """Validate a configuration mapping, applying environment overrides."""
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be an object")

        try:
            return GitConfig(**self._apply_env_overrides(data))
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def parse(self, content: str) -> GitConfig:
        """Parse configuration text submitted by the UI (JSON)."""
        try:
            data = json.loads(content)
        except (TypeError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Invalid JSON format: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be an object")
        try:
            return GitConfig(**data)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def save(self, config: GitConfig) -> Path:
        """Write the configuration file, replacing it atomically."""
        payload = config.model_dump()
        if self.file_path.suffix.lower() in (".yaml", ".yml"):
            text = yaml.safe_dump(payload, sort_keys=False, allow_unicode=True)
        else:
            text = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"

        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.file_path.parent, prefix=f".{self.file_path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                os.replace(tmp_name, self.file_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {e}") from e

        self.logger.info("Git configuration saved", file_path=str(self.file_path))
        return self.file_path

    def _apply_env_overrides(self, data: Dict[str, Any]) -> Dict[str, Any]:
        data = dict(data)
        for env_name, key in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                data[key] = value
        return data
