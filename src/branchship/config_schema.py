"""Configuration schema for branchship.

Defines all configuration options with types, defaults, and validation.
Uses Pydantic for schema enforcement and clear error messages.
"""

from __future__ import annotations

import re
import warnings
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


# Characters git refuses in a ref name component, plus leading '-'
_INVALID_REF_PATTERN = re.compile(r"(^-)|(\.\.)|([\s~^:?*\[\\])|(@\{)|(\.lock$)|(/$)|(^/)")


def _validate_ref_name(value: str, what: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{what} must not be empty")
    if value.startswith("refs/"):
        raise ValueError(f"{what} must be a short name, not a full ref: {value}")
    if _INVALID_REF_PATTERN.search(value):
        raise ValueError(f"{what} is not a valid git name: {value}")
    return value


class ShipConfig(BaseModel):
    """Workflow settings: which branch is trunk and where it is published."""

    trunk_branch: str = Field(
        default="main",
        description="Branch the feature branch is fast-forwarded into",
    )
    remote_name: str = Field(
        default="origin",
        description="Remote that receives trunk and loses the feature branch",
    )
    confirm_token: str = Field(
        default="y",
        description="Exact answer that approves the merge prompt",
    )

    @field_validator("trunk_branch")
    @classmethod
    def validate_trunk_branch(cls, v: str) -> str:
        return _validate_ref_name(v, "trunk_branch")

    @field_validator("remote_name")
    @classmethod
    def validate_remote_name(cls, v: str) -> str:
        v = _validate_ref_name(v, "remote_name")
        if "/" in v:
            raise ValueError(f"remote_name must not contain '/': {v}")
        return v

    @field_validator("confirm_token")
    @classmethod
    def validate_confirm_token(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("confirm_token must not be empty")
        return v


class AuthConfig(BaseModel):
    """How push and remote delete authenticate."""

    method: Literal["ambient", "token", "ssh"] = Field(
        default="ambient",
        description="ambient = git credential helpers/agent, token = HTTPS token, ssh = explicit key",
    )
    ssh_key: str = Field(
        default="",
        description="Path to SSH private key (method = ssh; empty = credentials file)",
    )

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("ssh_key")
    @classmethod
    def validate_ssh_key(cls, v: str) -> str:
        """Warn if SSH key path doesn't exist."""
        if v:
            path = Path(v).expanduser()
            if not path.exists():
                warnings.warn(
                    f"SSH key path does not exist: {v}",
                    UserWarning,
                )
            elif not path.is_file():
                warnings.warn(
                    f"SSH key path is not a file: {v}",
                    UserWarning,
                )
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level",
    )
    dir: str = Field(
        default="",
        description="Log directory (empty = ~/.branchship/logs)",
    )
    max_bytes: int = Field(
        default=10485760,  # 10MB
        ge=0,
        description="Maximum log file size in bytes",
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        description="Number of backup log files to keep",
    )
    disable_file: bool = Field(
        default=False,
        description="Disable file logging (stderr only)",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("dir")
    @classmethod
    def validate_log_dir(cls, v: str) -> str:
        """Warn if log path exists but is not a directory."""
        if v:
            path = Path(v).expanduser()
            if path.exists() and not path.is_dir():
                warnings.warn(
                    f"Log path exists but is not a directory: {v}",
                    UserWarning,
                )
        return v


class BranchshipConfig(BaseModel):
    """Root configuration model."""

    version: int = Field(
        default=1,
        ge=1,
        description="Config schema version",
    )

    ship: ShipConfig = Field(default_factory=ShipConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
