"""Configuration loading and merging for branchship.

Handles TOML loading, config discovery, deep merging, and environment overlay.
"""

from __future__ import annotations

import os
import sys
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

# TOML loading: tomllib (3.11+) with tomli fallback
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore

from pydantic import ValidationError

from .models import BranchshipError
from .config_schema import BranchshipConfig


CONFIG_FILENAME = "config.toml"

# Directory names
USER_CONFIG_DIR = ".branchship"
PROJECT_CONFIG_DIR = ".branchship"

# Environment variable -> (section path, key)
ENV_MAPPING: Dict[str, tuple[list[str], str]] = {
    "BRANCHSHIP_TRUNK_BRANCH": (["ship"], "trunk_branch"),
    "BRANCHSHIP_REMOTE": (["ship"], "remote_name"),
    "BRANCHSHIP_CONFIRM_TOKEN": (["ship"], "confirm_token"),
    "BRANCHSHIP_AUTH_METHOD": (["auth"], "method"),
    "BRANCHSHIP_GIT_SSH_KEY": (["auth"], "ssh_key"),
    "BRANCHSHIP_LOG_LEVEL": (["logging"], "level"),
    "BRANCHSHIP_LOG_DIR": (["logging"], "dir"),
    "BRANCHSHIP_LOG_MAX_BYTES": (["logging"], "max_bytes"),
    "BRANCHSHIP_LOG_BACKUP_COUNT": (["logging"], "backup_count"),
    "BRANCHSHIP_LOG_DISABLE_FILE": (["logging"], "disable_file"),
}


class ConfigError(BranchshipError):
    """Configuration loading or validation error."""

    pass


def _get_user_config_dir() -> Path:
    """Get user-level config directory (~/.branchship/)."""
    return Path.home() / USER_CONFIG_DIR


def _get_project_config_dir(project_path: Optional[Path] = None) -> Optional[Path]:
    """Get project-level config directory (.branchship/).

    Searches upward from project_path to find .branchship/ directory. The
    user-level directory is skipped so it is never read twice.
    """
    if project_path is None:
        project_path = Path.cwd()

    if not project_path.is_absolute():
        project_path = project_path.resolve()

    user_dir = _get_user_config_dir()
    current = project_path
    while current != current.parent:
        config_dir = current / PROJECT_CONFIG_DIR
        if config_dir.is_dir() and config_dir != user_dir:
            return config_dir
        current = current.parent

    return None


def _load_toml(path: Path) -> Dict[str, Any]:
    """Load a TOML file.

    Raises:
        ConfigError: If file cannot be loaded or parsed
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}")
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries.

    Override values take precedence. Nested dicts are merged recursively.
    Lists are replaced, not merged.
    """
    result = base.copy()

    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _env_to_config_key(env_var: str) -> tuple[list[str], str]:
    """Map environment variable to config path.

    Examples:
        BRANCHSHIP_TRUNK_BRANCH -> (["ship"], "trunk_branch")
        BRANCHSHIP_LOG_LEVEL -> (["logging"], "level")
    """
    return ENV_MAPPING.get(env_var, ([], env_var))


def _apply_env_overlay(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to config dict."""
    result = _deep_merge({}, config_dict)

    for env_var in ENV_MAPPING:
        value = os.getenv(env_var)
        if value is None:
            continue

        section_path, key_name = _env_to_config_key(env_var)

        current = result
        for section in section_path:
            if not isinstance(current.get(section), dict):
                current[section] = {}
            current = current[section]

        # Type conversion happens during Pydantic validation
        current[key_name] = value

    return result


def load_config(
    project_path: Optional[Path] = None,
    skip_env: bool = False,
) -> BranchshipConfig:
    """Load and merge branchship configuration.

    Discovery order (later sources override earlier):
    1. Built-in defaults
    2. User config (~/.branchship/config.toml)
    3. Project config (.branchship/config.toml)
    4. Environment variables (unless skip_env=True)

    Raises:
        ConfigError: If project config or the merged result is invalid
    """
    config_dict: Dict[str, Any] = {}

    user_config_path = _get_user_config_dir() / CONFIG_FILENAME
    if user_config_path.exists():
        try:
            user_config = _load_toml(user_config_path)
            config_dict = _deep_merge(config_dict, user_config)
        except ConfigError as e:
            # User config is optional, warn but continue
            warnings.warn(
                f"Skipping invalid user config at {user_config_path}: {e}",
                UserWarning,
            )

    project_config_dir = _get_project_config_dir(project_path)
    if project_config_dir:
        project_config_path = project_config_dir / CONFIG_FILENAME
        if project_config_path.exists():
            try:
                project_config = _load_toml(project_config_path)
            except ConfigError as e:
                raise ConfigError(f"Invalid project config: {e}") from e
            config_dict = _deep_merge(config_dict, project_config)

    if not skip_env:
        config_dict = _apply_env_overlay(config_dict)

    try:
        return BranchshipConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigError(f"Config validation failed:\n{e}") from e


def get_config_paths(project_path: Optional[Path] = None) -> Dict[str, Optional[Path]]:
    """Get paths to the user and project config files."""
    user_dir = _get_user_config_dir()
    project_dir = _get_project_config_dir(project_path)

    return {
        "user_config": user_dir / CONFIG_FILENAME,
        "project_config": project_dir / CONFIG_FILENAME if project_dir else None,
    }
