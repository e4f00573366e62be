"""Configuration management for expectest.

Loads and validates expectest.yaml configuration files.
"""

import importlib
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


class DiffConfig(BaseModel):
    """Configuration for failure diff rendering."""

    enhanced: bool = False
    """Attach structured added/removed diffs to equality failures."""

    max_repr_length: int = 100
    """Max length of a value repr in failure messages."""


class ExpectestConfig(BaseModel):
    """Root configuration for expectest."""

    version: str = "0.1"
    """Config file version."""

    debug_mode: bool = False
    """Enable verbose debug output."""

    diff: DiffConfig = Field(default_factory=DiffConfig)
    """Failure diff rendering."""

    spec_modules: list[str] = Field(default_factory=list)
    """Modules to import so that they register their specs."""

    @field_validator("spec_modules", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            return [v]
        return v


CONFIG_NAMES = (
    "expectest.yaml",
    "expectest.yml",
    ".expectest.yaml",
    ".expectest.yml",
)


def load_config(config_path: Path | None = None, project_root: Path | None = None) -> ExpectestConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Explicit path to config file. If None, searches for expectest.yaml.
        project_root: Project root directory. Defaults to cwd.

    Returns:
        Parsed configuration. Returns default config if no file found.
    """
    project_root = project_root or Path.cwd()

    # Find config file
    if config_path is None:
        for name in CONFIG_NAMES:
            candidate = project_root / name
            if candidate.exists():
                config_path = candidate
                break

    # No config file - return defaults
    if config_path is None or not config_path.exists():
        return apply_env_overrides(ExpectestConfig())

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return apply_env_overrides(ExpectestConfig.model_validate(data))


def apply_env_overrides(config: ExpectestConfig) -> ExpectestConfig:
    """Apply EXPECTEST_* environment variables on top of a config (new instance)."""
    update: dict[str, Any] = {}
    if os.environ.get("EXPECTEST_DEBUG") == "1":
        update["debug_mode"] = True
    if os.environ.get("EXPECTEST_ENHANCED_DIFF") == "1":
        update["diff"] = config.diff.model_copy(update={"enhanced": True})
    if not update:
        return config
    return config.model_copy(update=update)


def load_spec_modules(config: ExpectestConfig) -> list[str]:
    """Import every configured spec module.

    Returns:
        Names of the modules that were imported.
    """
    loaded = []
    for module_name in config.spec_modules:
        importlib.import_module(module_name)
        loaded.append(module_name)
    return loaded


# Active configuration, loaded lazily from the working directory
_config: ExpectestConfig | None = None


def get_config() -> ExpectestConfig:
    """Get or load the active configuration."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: ExpectestConfig | None) -> None:
    """Replace the active configuration. None forces a reload on next access."""
    global _config
    _config = config
