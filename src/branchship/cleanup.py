"""Feature branch removal after trunk is published.

Order matters: the remote copy goes first, the local copy last. At every
point some ref still reaches the feature commits (trunk on the remote, the
remote branch, or the local branch), so a failure leaves nothing
unreachable and the operator finishes the remaining step by hand.
"""

from __future__ import annotations

from git.exc import GitCommandError

from .auth import AuthStrategy
from .models import Branch, OperationOutcome, Stage
from .observability import log_debug
from .repository import RepositoryHandle, git_error_text


class CleanupCoordinator:
    """Deletes the feature branch on the remote, then locally."""

    def __init__(self, handle: RepositoryHandle, auth: AuthStrategy):
        self._handle = handle
        self._auth = auth

    def delete_remote(self, branch: Branch, remote_name: str) -> OperationOutcome:
        if not self._handle.has_remote(remote_name):
            return OperationOutcome.failure(Stage.DELETE_REMOTE, f"Remote '{remote_name}' is not configured")

        credentials = self._auth.credentials()
        log_debug("deleting remote branch", remote=remote_name, branch=branch.name, auth=credentials.label)
        try:
            self._handle.delete_remote_branch(remote_name, branch.name, credentials.env)
        except GitCommandError as e:
            return OperationOutcome.failure(Stage.DELETE_REMOTE, git_error_text(e))
        return OperationOutcome.success(Stage.DELETE_REMOTE)

    def delete_local(self, branch: Branch) -> OperationOutcome:
        """Safe delete: git refuses if the branch has commits trunk lacks."""
        try:
            self._handle.delete_local_branch(branch.name)
        except GitCommandError as e:
            return OperationOutcome.failure(Stage.DELETE_LOCAL, git_error_text(e))
        return OperationOutcome.success(Stage.DELETE_LOCAL)

