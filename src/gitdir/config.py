from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from gitdir.exceptions import ConfigError
from gitdir.logging import get_logger

__all__ = [
    "GitDirConfig",
    "GitConfig",
    "WorkspaceConfig",
    "get_config",
    "load_config",
    "get_user_config_path",
    "PROJECT_CONFIG_FILENAME",
]

logger = get_logger(__name__)

PROJECT_CONFIG_FILENAME = "gitdir.yaml"


class GitConfig(BaseModel):
    """Settings for invoking the git executable.

    Attributes:
        executable: Name or path of the git binary.
        timeout_seconds: Maximum time a single git invocation may run.
        max_retries: Retries for transient failures (timeouts). Pushes are
            never retried on rejection.
        author_name: Identity exported as GIT_AUTHOR_NAME/GIT_COMMITTER_NAME.
        author_email: Identity exported as GIT_AUTHOR_EMAIL/GIT_COMMITTER_EMAIL.
    """

    executable: str = "git"
    timeout_seconds: float = Field(default=120.0, gt=0.0, le=3600.0)
    max_retries: int = Field(default=0, ge=0, le=5)
    author_name: str | None = None
    author_email: str | None = None

    @field_validator("executable")
    @classmethod
    def check_executable_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("git executable cannot be blank")
        return v

    def identity_env(self) -> dict[str, str]:
        """Environment overrides carrying the configured commit identity."""
        env: dict[str, str] = {}
        if self.author_name:
            env["GIT_AUTHOR_NAME"] = self.author_name
            env["GIT_COMMITTER_NAME"] = self.author_name
        if self.author_email:
            env["GIT_AUTHOR_EMAIL"] = self.author_email
            env["GIT_COMMITTER_EMAIL"] = self.author_email
        return env


class WorkspaceConfig(BaseModel):
    """Settings for the scratch directories used by branch updates.

    Attributes:
        temp_prefix: Prefix for every scratch directory name.
        temp_root: Parent directory for scratch directories (default: system
            temp directory).
    """

    temp_prefix: str = "git_dir-"
    temp_root: Path | None = None

    @field_validator("temp_root")
    @classmethod
    def check_temp_root_exists(cls, v: Path | None) -> Path | None:
        """Warn if temp_root doesn't exist yet."""
        if v is not None and not v.is_dir():
            logger.warning(
                "workspace_temp_root_missing",
                temp_root=str(v),
            )
        return v


class YamlConfigSource(PydanticBaseSettingsSource):
    """Settings source that loads values from a YAML file."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file and yaml_file.exists():
            try:
                with open(yaml_file) as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(
                    message=f"Invalid YAML in {yaml_file}: {e}",
                ) from e
            if loaded is None:
                logger.warning("config_file_empty", path=str(yaml_file))
            elif not isinstance(loaded, dict):
                raise ConfigError(
                    message=f"Expected a mapping at the top of {yaml_file}",
                    value=loaded,
                )
            else:
                self._config_data = loaded

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._config_data


class GitDirConfig(BaseSettings):
    """Root configuration object containing all gitdir settings."""

    model_config = SettingsConfigDict(
        env_prefix="GITDIR_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    git: GitConfig = Field(default_factory=GitConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    verbosity: Literal["error", "warning", "info", "debug"] = "warning"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources.

        Priority (highest to lowest):
        1. Explicit init arguments
        2. Environment variables (GITDIR_*)
        3. Project YAML config (./gitdir.yaml, or the path passed to
           load_config)
        4. User YAML config (~/.config/gitdir/config.yaml)
        """
        project_config_path = _project_config_override or (
            Path.cwd() / PROJECT_CONFIG_FILENAME
        )
        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, project_config_path),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


# set only for the duration of load_config(config_path=...)
_project_config_override: Path | None = None


def get_user_config_path() -> Path:
    """Get the path to the user configuration file.

    Returns:
        Path to ~/.config/gitdir/config.yaml
    """
    return Path.home() / ".config" / "gitdir" / "config.yaml"


def load_config(config_path: Path | None = None) -> GitDirConfig:
    """Load configuration with hierarchy: defaults -> user -> project -> env.

    Args:
        config_path: Optional project config file. Defaults to ./gitdir.yaml.

    Returns:
        GitDirConfig with merged configuration.

    Raises:
        ConfigError: If configuration is invalid.
    """
    global _project_config_override

    if config_path is not None and not config_path.exists():
        raise ConfigError(
            message=f"Config file not found: {config_path}",
            field=None,
            value=str(config_path),
        )

    _project_config_override = config_path
    try:
        return GitDirConfig()
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
    finally:
        _project_config_override = None


@lru_cache(maxsize=1)
def get_config() -> GitDirConfig:
    """Process-wide configuration, loaded once on first use."""
    return load_config()
