"""Authentication strategies for push and remote branch deletion.

The publisher and cleanup stages only know the ``AuthStrategy`` protocol:
they ask for ``GitCredentials`` right before each network operation and run
git with the returned environment. Which strategy is used is decided by the
caller (the CLI builds one from configuration).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Protocol, runtime_checkable

from .config_loader import ConfigError
from .config_schema import AuthConfig
from .credentials import get_github_token, get_ssh_key_path


# Env var carrying the token to the inline credential helper
TOKEN_ENV_VAR = "BRANCHSHIP_PUSH_TOKEN"

# Inline helper: empty value first resets any configured helpers
_TOKEN_HELPER = '!f() { echo "username=x-access-token"; echo "password=${%s}"; }; f' % TOKEN_ENV_VAR

# Git must fail fast instead of prompting on the terminal mid-pipeline
_NON_INTERACTIVE_ENV = {
    "GIT_TERMINAL_PROMPT": "0",
    "GCM_INTERACTIVE": "never",
}


@dataclass(frozen=True)
class GitCredentials:
    """Environment handed to git for one network operation.

    ``label`` describes the mechanism for logs and never contains secrets.
    """

    label: str
    env: Mapping[str, str] = field(default_factory=dict)


@runtime_checkable
class AuthStrategy(Protocol):
    """Produces credential material on demand."""

    def credentials(self) -> GitCredentials:
        ...


class AmbientAuth:
    """Use whatever git already has: credential helpers, ssh-agent, keychain."""

    def credentials(self) -> GitCredentials:
        return GitCredentials(label="ambient", env=dict(_NON_INTERACTIVE_ENV))


class TokenAuth:
    """HTTPS token authentication through an inline git credential helper.

    The token travels in an environment variable, not on a command line.
    """

    def __init__(self, token: str):
        if not token:
            raise ValueError("TokenAuth requires a non-empty token")
        self._token = token

    def __repr__(self) -> str:
        return "TokenAuth(token=***)"

    def credentials(self) -> GitCredentials:
        env = dict(_NON_INTERACTIVE_ENV)
        env.update(
            {
                TOKEN_ENV_VAR: self._token,
                "GIT_CONFIG_COUNT": "2",
                "GIT_CONFIG_KEY_0": "credential.helper",
                "GIT_CONFIG_VALUE_0": "",
                "GIT_CONFIG_KEY_1": "credential.helper",
                "GIT_CONFIG_VALUE_1": _TOKEN_HELPER,
            }
        )
        return GitCredentials(label="token", env=env)


class SshKeyAuth:
    """SSH authentication with an explicit private key, batch mode only."""

    def __init__(self, key_path: Path):
        self.key_path = Path(key_path).expanduser()

    def credentials(self) -> GitCredentials:
        env = dict(_NON_INTERACTIVE_ENV)
        env["GIT_SSH_COMMAND"] = (
            f'ssh -i "{self.key_path}" -o IdentitiesOnly=yes -o BatchMode=yes'
        )
        return GitCredentials(label="ssh", env=env)


def build_auth_strategy(auth_config: AuthConfig) -> AuthStrategy:
    """Select the strategy named by ``[auth] method``.

    Raises:
        ConfigError: If the chosen method has no credential material
    """
    if auth_config.method == "token":
        token = get_github_token()
        if not token:
            raise ConfigError(
                "auth.method = 'token' but no token found. Set BRANCHSHIP_GITHUB_TOKEN, "
                "GITHUB_TOKEN or GH_TOKEN, or add [github] token to ~/.branchship/credentials.toml"
            )
        return TokenAuth(token)

    if auth_config.method == "ssh":
        key_path = get_ssh_key_path(auth_config.ssh_key)
        if key_path is None:
            raise ConfigError(
                "auth.method = 'ssh' but no key configured. Set auth.ssh_key, "
                "BRANCHSHIP_GIT_SSH_KEY, or [github] ssh_key in ~/.branchship/credentials.toml"
            )
        return SshKeyAuth(key_path)

    return AmbientAuth()
