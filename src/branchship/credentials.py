"""Read-only access to credential material for push authentication.

branchship never stores or rotates secrets. It reads what already exists:
environment variables first, then ``~/.branchship/credentials.toml``::

    [github]
    token = "ghp_..."
    ssh_key = "~/.ssh/id_ed25519"
"""

from __future__ import annotations

import os
import sys
import warnings
from pathlib import Path
from typing import Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore

from pydantic import BaseModel, Field, ValidationError


CREDENTIALS_FILENAME = "credentials.toml"
USER_CONFIG_DIR = ".branchship"

# Checked in order; the first non-empty value wins
TOKEN_ENV_VARS = ("BRANCHSHIP_GITHUB_TOKEN", "GITHUB_TOKEN", "GH_TOKEN")
SSH_KEY_ENV_VAR = "BRANCHSHIP_GIT_SSH_KEY"


class GitHubCredentials(BaseModel):
    """GitHub authentication credentials."""

    token: str = Field(
        default="",
        description="GitHub personal access token",
    )
    ssh_key: str = Field(
        default="",
        description="Path to SSH private key",
    )


class Credentials(BaseModel):
    """All branchship credentials."""

    github: GitHubCredentials = Field(default_factory=GitHubCredentials)


def _get_user_credentials_path() -> Path:
    """Get path to user credentials file."""
    return Path.home() / USER_CONFIG_DIR / CREDENTIALS_FILENAME


def load_credentials() -> Credentials:
    """Load credentials from the TOML file.

    A missing file yields empty credentials; an unreadable one warns and
    yields empty credentials.
    """
    path = _get_user_credentials_path()
    if not path.exists():
        return Credentials()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return Credentials.model_validate(data)
    except (OSError, tomllib.TOMLDecodeError, ValidationError) as e:
        warnings.warn(f"Error loading credentials from {path}: {e}", UserWarning)
        return Credentials()


def get_github_token() -> Optional[str]:
    """Get GitHub token from environment or credentials file.

    Priority: Environment > Credentials file
    """
    for name in TOKEN_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value

    creds = load_credentials()
    return creds.github.token or None


def get_ssh_key_path(configured: str = "") -> Optional[Path]:
    """Get SSH key path from config, environment or credentials file.

    Priority: configured value > Environment > Credentials file
    """
    if configured:
        return Path(configured).expanduser()

    env_key = os.getenv(SSH_KEY_ENV_VAR)
    if env_key:
        return Path(env_key).expanduser()

    creds = load_credentials()
    if creds.github.ssh_key:
        return Path(creds.github.ssh_key).expanduser()

    return None
