"""Configuration loader for mj.

Loads settings from a YAML file with built-in defaults. Supports environment
variable overrides using the MJ_ prefix with double-underscore nesting
(e.g., MJ_STORAGE__DIR_NAME=.mj_tokens).
"""

from __future__ import annotations

import logging
import os
import pathlib
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Config sub-models
# ---------------------------------------------------------------------------

class StorageConfig(BaseModel):
    home: str | None = None
    dir_name: str = ".deno_tokens"


class GitHubConfig(BaseModel):
    host: str = "github.com"
    token_key: str = "github_token"
    token_prefixes: list[str] = Field(default_factory=lambda: ["ghp_", "gho_"])


class LoggingConfig(BaseModel):
    level: str = "WARNING"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value!r}")
        return level


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# ---------------------------------------------------------------------------
# Deep merge helper
# ---------------------------------------------------------------------------

def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into *base*, returning a new dict."""
    merged = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "MJ_"


def _collect_env_overrides() -> dict[str, Any]:
    """Collect MJ_* env vars and build a nested dict.

    Double-underscore separates nesting levels.
    Example: MJ_GITHUB__HOST=github.example.com
    becomes  {"github": {"host": "github.example.com"}}
    """
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(_ENV_PREFIX):
            continue
        parts = key[len(_ENV_PREFIX) :].lower().split("__")
        current = overrides
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        # Values stay strings; pydantic coerces where a field is not a str.
        current[parts[-1]] = value
    return overrides


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def default_config_path() -> pathlib.Path:
    return pathlib.Path.home() / ".config" / "mj" / "config.yaml"


def load_settings(
    config_path: pathlib.Path | None = None,
) -> Settings:
    """Load settings with layered precedence: defaults < file < env vars.

    Parameters
    ----------
    config_path:
        Path to a YAML config file. If ``None``, the per-user file at
        ``~/.config/mj/config.yaml`` is used when it exists.
    """
    base: dict[str, Any] = {}

    path = config_path if config_path is not None else default_config_path()
    if path.exists():
        with open(path) as fh:
            file_data = yaml.safe_load(fh)
        if isinstance(file_data, dict):
            base = _deep_merge(base, file_data)

    env_overrides = _collect_env_overrides()
    if env_overrides:
        base = _deep_merge(base, env_overrides)

    return Settings(**base)
