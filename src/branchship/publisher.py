"""Publishes the fast-forwarded trunk to the remote."""

from __future__ import annotations

from git.exc import GitCommandError

from .auth import AuthStrategy
from .models import OperationOutcome, Stage
from .observability import log_debug
from .repository import RepositoryHandle, git_error_text, local_ref


class RemotePublisher:
    """Pushes ``refs/heads/<trunk>`` to the same ref on one remote.

    Any failure (unknown remote, network, rejection, non-fast-forward at the
    remote) is a failure outcome; nothing is retried.
    """

    def __init__(self, handle: RepositoryHandle, trunk_name: str):
        self._handle = handle
        self.trunk_name = trunk_name

    def publish(self, remote_name: str, auth: AuthStrategy) -> OperationOutcome:
        if not self._handle.has_remote(remote_name):
            return OperationOutcome.failure(Stage.PUBLISH, f"Remote '{remote_name}' is not configured")

        ref = local_ref(self.trunk_name)
        credentials = auth.credentials()
        log_debug("pushing", remote=remote_name, ref=ref, auth=credentials.label)
        try:
            self._handle.push(remote_name, f"{ref}:{ref}", credentials.env)
        except GitCommandError as e:
            return OperationOutcome.failure(Stage.PUBLISH, git_error_text(e))
        return OperationOutcome.success(Stage.PUBLISH)
