"""Configuration management for the defenders CLI."""

import os
import sys
from pathlib import Path
from typing import Literal

import orjson
from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from defenders_cli.core.exceptions import ConfigError
from defenders_cli.utils.json_utils import JsonHandler

DEFAULT_ORGANIZATION = "https://dev.azure.com/msazure"
DEFAULT_PROJECT = "One"
DEFAULT_TEAM = "Rome"
DEFAULT_AREA = "One\\Rome\\CNAPP\\Defenders\\BarTeam"

CONFIG_DIRNAME = "defenders"
CONFIG_FILENAME = "config.json"


class DefendersConfig(BaseModel):
    """Contents of the config.json file."""

    model_config = ConfigDict(extra="ignore")

    pat: str = Field(default="", description="Personal Access Token")
    organization: str = Field(default="", description="Organization URL")
    project: str = Field(default="", description="Project name")
    team: str = Field(default="", description="Team name")
    area: str = Field(default="", description="Area path for new work items")
    assigned_to: str = Field(default="", description="Default assignee email")

    @classmethod
    def defaults(cls) -> "DefendersConfig":
        """Configuration written by ``conf reset`` and offered by the wizard."""
        return cls(
            organization=DEFAULT_ORGANIZATION,
            project=DEFAULT_PROJECT,
            team=DEFAULT_TEAM,
            area=DEFAULT_AREA,
        )


class EnvironmentSettings(BaseSettings):
    """ADO_* environment overrides."""

    model_config = SettingsConfigDict(env_prefix="ADO_", extra="ignore")

    pat: SecretStr | None = None
    org: str | None = None
    project: str | None = None
    team: str | None = None
    area: str | None = None
    assigned_to: str | None = None


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="DEFENDERS_LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )
    format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        description="Log message format",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path (None for console only)",
    )
    rich_console: bool = Field(
        default=True,
        description="Use rich console for prettier output",
    )


def default_config_dir() -> Path:
    """
    Get the per-OS configuration directory.

    ``DEFENDERS_CONFIG_DIR`` overrides the location on every platform.

    Raises:
        ConfigError: On Windows when APPDATA is not set
    """
    override = os.environ.get("DEFENDERS_CONFIG_DIR")
    if override:
        return Path(override)

    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if not app_data:
            raise ConfigError("APPDATA environment variable not set")
        return Path(app_data) / CONFIG_DIRNAME

    return Path.home() / ".config" / CONFIG_DIRNAME


class ConfigStore:
    """Loads and saves the JSON config file."""

    def __init__(self, path: Path | None = None):
        self._path = path

    @property
    def path(self) -> Path:
        if self._path is None:
            self._path = default_config_dir() / CONFIG_FILENAME
        return self._path

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> DefendersConfig | None:
        """
        Load the config file.

        Returns:
            The stored configuration, or None when no file exists

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        try:
            data = JsonHandler.load_file(self.path)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ConfigError(f"could not read config file: {e}", path=str(self.path)) from e
        except orjson.JSONDecodeError as e:
            raise ConfigError(f"could not parse config file: {e}", path=str(self.path)) from e

        try:
            return DefendersConfig.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigError(
                f"could not parse config file: {e.error_count()} invalid field(s)",
                path=str(self.path),
            ) from e

    def save(self, config: DefendersConfig) -> Path:
        """
        Write the config file with owner-only permissions.

        Raises:
            ConfigError: If the directory or file cannot be written
        """
        try:
            JsonHandler.dump_file(config.model_dump(), self.path)
        except OSError as e:
            raise ConfigError(f"could not write config file: {e}", path=str(self.path)) from e
        return self.path

    def reset(self) -> Path:
        """Overwrite the config file with built-in defaults."""
        return self.save(DefendersConfig.defaults())


def resolve_value(
    flag_value: str | None,
    env_value: str | None,
    config_value: str | None,
    default: str = "",
) -> str:
    """Pick the first non-empty value in precedence order: flag > env > config > default."""
    for value in (flag_value, env_value, config_value):
        if value:
            return value
    return default


class SettingsResolver:
    """
    Resolves each configurable value across flags, ADO_* environment
    variables, the config file and built-in defaults.

    The config file is read on first use and cached for the resolver's lifetime.
    """

    def __init__(self, store: ConfigStore | None = None):
        self.store = store or ConfigStore()
        self._file_config: DefendersConfig | None = None
        self._loaded = False

    @property
    def file_config(self) -> DefendersConfig:
        if not self._loaded:
            self._file_config = self.store.load()
            self._loaded = True
        return self._file_config or DefendersConfig()

    def pat(self, flag_value: str | None = None) -> str:
        env = EnvironmentSettings()
        env_pat = env.pat.get_secret_value() if env.pat else None
        return resolve_value(flag_value, env_pat, self.file_config.pat)

    def organization(self, flag_value: str | None = None) -> str:
        return resolve_value(
            flag_value, EnvironmentSettings().org, self.file_config.organization, DEFAULT_ORGANIZATION
        )

    def project(self, flag_value: str | None = None) -> str:
        return resolve_value(
            flag_value, EnvironmentSettings().project, self.file_config.project, DEFAULT_PROJECT
        )

    def team(self, flag_value: str | None = None) -> str:
        return resolve_value(flag_value, EnvironmentSettings().team, self.file_config.team, DEFAULT_TEAM)

    def area(self, flag_value: str | None = None) -> str:
        return resolve_value(flag_value, EnvironmentSettings().area, self.file_config.area, DEFAULT_AREA)

    def assigned_to(self, flag_value: str | None = None) -> str:
        return resolve_value(flag_value, EnvironmentSettings().assigned_to, self.file_config.assigned_to)


def mask_pat(pat: str) -> str:
    """Mask a PAT for display, keeping only the first and last four characters."""
    if not pat:
        return "(not set)"
    if len(pat) <= 8:
        return "****"
    return f"{pat[:4]}...{pat[-4:]}"
