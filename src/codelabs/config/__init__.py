"""Configuration management for the codelabs tool."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import CodelabsConfig
from .paths import ProjectPaths, locate_project_root, resolve_paths
from .resolver import (
    assign_nested,
    flatten_for_env,
    overrides_from_env,
    resolve_with_precedence,
)

DEFAULT_CONFIG_PATH = Path("~/.codelabs/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # Codelabs tool configuration file
    # Generated automatically; manage via `codelabs config set`.
    """
)


class ConfigManager:
    """Load and persist configuration data, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> CodelabsConfig:
        """Load configuration from disk and layer environment and CLI overrides.

        Args:
            cli_overrides: Dotted-key overrides supplied by CLI options.
            include_env: Whether ``CODELABS__`` environment variables apply.
            ensure_file: Create the configuration file with defaults if missing.
            env_overrides: Environment mapping to use instead of ``os.environ``.

        Returns:
            CodelabsConfig: Effective configuration.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_data = None
        if include_env:
            env_data = overrides_from_env(env_overrides if env_overrides is not None else self._env)

        return resolve_with_precedence(
            defaults=CodelabsConfig(),
            file_overrides=self._read_file(),
            env_overrides=env_data or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return raw overrides stored on disk."""
        return self._read_file()

    def save(self, config: CodelabsConfig | Mapping[str, Any]) -> None:
        """Persist configuration data to disk."""
        if isinstance(config, CodelabsConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        if not self._config_path.exists():
            self._write_file(CodelabsConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{serialized}", encoding="utf-8"
        )


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "CodelabsConfig",
    "ProjectPaths",
    "locate_project_root",
    "resolve_paths",
    "resolve_with_precedence",
    "flatten_for_env",
    "overrides_from_env",
    "assign_nested",
    "ConfigError",
]
