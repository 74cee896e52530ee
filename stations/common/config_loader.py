"""Configuration loading and validation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from stations.common.errors import ConfigError
from stations.common.fs import read_yaml
from stations.common.schema import validate_pipeline_config

CONFIG_FILENAME = "stations.yml"


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> Any:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def load_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> dict:
    overlay_path = overlay_config_dir / CONFIG_FILENAME if overlay_config_dir is not None else None
    cfg = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    return validate_pipeline_config(cfg, allow_unknown=allow_unknown)


def resolve_path(data_dir: Path, value: str | os.PathLike) -> Path:
    path = Path(value)
    if path.is_absolute():
        return path
    return data_dir / path


def read_secret(env_name: str | None, *, required: bool = True) -> str | None:
    """Return the secret stored in environment variable ``env_name``."""
    if not env_name:
        if required:
            raise ConfigError("No environment variable configured for secret")
        return None
    value = os.environ.get(env_name)
    if required and not value:
        raise ConfigError(f"Environment variable {env_name} is not set")
    return value
