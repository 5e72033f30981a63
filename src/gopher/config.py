"""Configuration loading and persistence."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from gopher.archive import MAX_FILE_SIZE
from gopher.errors import ConfigError, SecurityError
from gopher.security import validate_directory_path, validate_path
from gopher.types import TargetPlatform

# Default configuration location
CONFIG_DIR = Path.home() / ".gopher"
CONFIG_FILENAME = "config.json"

ENV_INSTALL_DIR = "GOPHER_INSTALL_DIR"
ENV_DOWNLOAD_DIR = "GOPHER_DOWNLOAD_DIR"
ENV_MAX_FILE_SIZE = "GOPHER_MAX_FILE_SIZE"
ENV_CONFIG = "GOPHER_CONFIG"


class Config(BaseModel):
    """User configuration for gopher."""

    install_dir: Path = Field(default_factory=lambda: CONFIG_DIR / "versions")
    download_dir: Path = Field(default_factory=lambda: CONFIG_DIR / "downloads")
    max_file_size: int = Field(default=MAX_FILE_SIZE, gt=0)
    target_os: str = Field(default_factory=lambda: TargetPlatform.current().os)
    target_arch: str = Field(default_factory=lambda: TargetPlatform.current().arch)

    @field_validator("install_dir", "download_dir")
    @classmethod
    def _check_directory(cls, value: Path) -> Path:
        try:
            validate_directory_path(value)
        except SecurityError as e:
            raise ValueError(str(e)) from e
        return value

    @property
    def platform(self) -> TargetPlatform:
        """Platform toolchains are installed for."""
        return TargetPlatform(os=self.target_os, arch=self.target_arch)

    def with_env_overrides(self, environ: Mapping[str, str] | None = None) -> Config:
        """Apply GOPHER_* environment overrides.

        Args:
            environ: Environment mapping. Defaults to os.environ.

        Returns:
            New Config with overrides applied.

        Raises:
            ConfigError: If an override is not a valid value.
        """
        environ = os.environ if environ is None else environ
        updates: dict[str, object] = {}
        if environ.get(ENV_INSTALL_DIR):
            updates["install_dir"] = Path(environ[ENV_INSTALL_DIR])
        if environ.get(ENV_DOWNLOAD_DIR):
            updates["download_dir"] = Path(environ[ENV_DOWNLOAD_DIR])
        if environ.get(ENV_MAX_FILE_SIZE):
            updates["max_file_size"] = environ[ENV_MAX_FILE_SIZE]
        if not updates:
            return self

        try:
            return Config.model_validate({**self.model_dump(), **updates})
        except ValidationError as e:
            raise ConfigError(f"invalid environment override: {e}") from e

    def ensure_directories(self) -> None:
        """Create the install and download directories if missing.

        Raises:
            ConfigError: If a directory cannot be created.
        """
        for directory in (self.install_dir, self.download_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ConfigError(f"failed to create directory {directory}: {e}") from e

    def save(self, path: Path) -> None:
        """Write configuration as JSON.

        Args:
            path: Destination file. Parent directories are created.

        Raises:
            ConfigError: If the path is unsafe or cannot be written.
        """
        try:
            validate_path(path)
        except SecurityError as e:
            raise ConfigError(f"invalid config path: {e}") from e

        data = self.model_dump(mode="json")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2) + "\n")
        except OSError as e:
            raise ConfigError(f"failed to save config {path}: {e}") from e


def default_config_path() -> Path:
    """Return the config file location, honouring GOPHER_CONFIG."""
    override = os.environ.get(ENV_CONFIG)
    if override:
        return Path(override)
    return CONFIG_DIR / CONFIG_FILENAME


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    create: bool = True,
) -> Config:
    """Load configuration from disk.

    A default configuration is written on first load. Environment overrides
    are applied after reading and are never persisted.

    Args:
        path: Config file (default location if not provided).
        environ: Environment mapping for overrides. Defaults to os.environ.
        create: Write a default file when none exists.

    Returns:
        Loaded Config.

    Raises:
        ConfigError: If the file is unsafe, unreadable or invalid.
    """
    path = path or default_config_path()
    try:
        validate_path(path)
    except SecurityError as e:
        raise ConfigError(f"invalid config path: {e}") from e

    if not path.exists():
        config = Config()
        if create:
            config.save(path)
        return config.with_env_overrides(environ)

    try:
        data = json.loads(path.read_text())
        config = Config.model_validate(data)
    except OSError as e:
        raise ConfigError(f"failed to read config file {path}: {e}") from e
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigError(f"failed to parse config file {path}: {e}") from e

    return config.with_env_overrides(environ)
