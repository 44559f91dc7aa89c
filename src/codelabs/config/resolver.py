"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import CodelabsConfig

ENV_PREFIX = "CODELABS__"


def resolve_with_precedence(
    *,
    defaults: CodelabsConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> CodelabsConfig:
    """Merge configuration sources: defaults < file < environment < CLI.

    Raises:
        ConfigError: If an override is malformed or the merged values are invalid.
    """
    merged = defaults.model_dump(mode="python")
    sources = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for name, source in sources:
        if source is not None:
            merged = _deep_merge(merged, _normalize_mapping(source, source_name=name))

    try:
        return CodelabsConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: CodelabsConfig) -> Dict[str, str]:
    """Flatten the config into ``CODELABS__SECTION__KEY`` environment mappings."""
    flat: Dict[str, str] = {}

    def _recurse(prefix: list[str], value: Any) -> None:
        if isinstance(value, dict):
            for key, child in value.items():
                _recurse(prefix + [str(key)], child)
            return
        env_key = ENV_PREFIX + "__".join(part.upper() for part in prefix)
        if isinstance(value, list):
            flat[env_key] = yaml.safe_dump(value, default_flow_style=True).strip()
        else:
            flat[env_key] = "null" if value is None else str(value)

    for key, value in config.model_dump(mode="python").items():
        _recurse([str(key)], value)
    return flat


def overrides_from_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``CODELABS__`` variables into a nested override mapping.

    Values are parsed as YAML scalars so ``true`` and ``2`` keep their types.
    """
    overrides: dict[str, Any] = {}
    for key, raw_value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
        if not path:
            continue
        try:
            value = yaml.safe_load(raw_value)
        except yaml.YAMLError:
            value = raw_value
        assign_nested(overrides, path, value)
    return overrides


def assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Set ``value`` at the nested ``path`` inside target, creating mappings.

    Raises:
        ConfigError: If an intermediate segment already holds a scalar.
    """
    node = target
    for segment in path[:-1]:
        existing = node.setdefault(segment, {})
        if not isinstance(existing, dict):
            raise ConfigError(f"Cannot assign {'.'.join(path)}: '{segment}' is not a section.")
        node = existing
    node[path[-1]] = value


def _normalize_mapping(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    label = source_name.capitalize()
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{label} overrides must be a mapping.")

    result: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{label} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = _normalize_mapping(value, source_name=source_name)
        path = key.split(".")
        existing = result
        for segment in path[:-1]:
            existing = existing.setdefault(segment, {})
            if not isinstance(existing, dict):
                raise ConfigError(f"{label} override for {key} conflicts with existing value.")
        leaf = path[-1]
        if isinstance(value, dict) and isinstance(existing.get(leaf), dict):
            existing[leaf] = _deep_merge(existing[leaf], value)
        else:
            existing[leaf] = value
    return result


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        if isinstance(value, MappingABC) and isinstance(merged.get(key), MappingABC):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = [
    "ENV_PREFIX",
    "resolve_with_precedence",
    "flatten_for_env",
    "overrides_from_env",
    "assign_nested",
]
