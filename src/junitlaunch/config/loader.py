"""Layered configuration for jlaunch.

Sources, lowest precedence first:

- built-in model defaults
- ``~/.config/jlaunch/config.yaml`` (machine-wide JDK, Maven repository)
- ``<project>/.jlaunch/config.yaml`` (runner jar, listeners, JVM args)
- ``JLAUNCH__<SECTION>__<KEY>`` environment variables
- keyword overrides passed to ``load_config``

Both YAML files are merged key by key before pydantic-settings layers the
environment and overrides on top.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from junitlaunch.config.models import (
    ArtifactsConfig,
    JLaunchConfig,
    LaunchConfig,
    LoggingConfig,
)
from junitlaunch.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/jlaunch/config.yaml").expanduser()
REPO_CONFIG_DIR = ".jlaunch"
REPO_CONFIG_FILE = "config.yaml"


def repo_config_path(repo_root: Path) -> Path:
    return repo_root / REPO_CONFIG_DIR / REPO_CONFIG_FILE


def _load_yaml(path: Path) -> dict[str, Any]:
    """Mapping stored in ``path``; a missing or empty file gives ``{}``."""
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """``override`` wins; nested mappings merge instead of replacing. Inputs are not mutated."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class _FileSource(PydanticBaseSettingsSource):
    """Feeds the merged YAML files to pydantic-settings."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._data


def _settings_for(file_data: dict[str, Any]) -> type[BaseSettings]:
    """Settings class bound to one load's file data, so loads never share state."""

    class JLaunchSettings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix="JLAUNCH__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        launch: LaunchConfig = LaunchConfig()
        artifacts: ArtifactsConfig = ArtifactsConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            return (init_settings, env_settings, _FileSource(settings_cls, file_data))

    return JLaunchSettings


def load_config(repo_root: Path | None = None, **overrides: Any) -> JLaunchConfig:
    """Resolve the configuration for the project at ``repo_root`` (default: cwd).

    Raises:
        ConfigError: If a file is not valid YAML or a value fails validation.
    """
    file_data = _deep_merge(
        _load_yaml(GLOBAL_CONFIG_PATH),
        _load_yaml(repo_config_path(repo_root or Path.cwd())),
    )
    try:
        settings = _settings_for(file_data)(**overrides)
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(part) for part in first["loc"])
        raise ConfigError.invalid_value(where, first.get("input"), first["msg"]) from e
    return JLaunchConfig.model_validate(settings.model_dump())
