"""Thin GitPython wrapper: the only module that builds full ref names.

Every git failure that means "the repository is not in a usable state" is
raised as ``RepositoryStateError``. Network operations (push, remote delete)
let ``GitCommandError`` through so the calling stage can turn it into a
failure outcome.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Union

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from .models import BranchKind, CommitId, RepositoryStateError
from .observability import log_debug


def local_ref(name: str) -> str:
    return f"refs/heads/{name}"


def remote_ref(remote_name: str, name: str) -> str:
    return f"refs/remotes/{remote_name}/{name}"


def git_error_text(error: GitCommandError) -> str:
    """Prefer git's own stderr over GitPython's multi-line repr."""
    stderr = (error.stderr or "").strip()
    if stderr.startswith("stderr:"):
        stderr = stderr[len("stderr:"):].strip()
    stderr = stderr.strip("'\" \n")
    return stderr or str(error)


class RepositoryHandle:
    """Access to one local repository's refs, commits, and worktree."""

    def __init__(self, repo: Repo):
        self._repo = repo

    @classmethod
    def open(cls, path: Union[str, Path] = ".") -> "RepositoryHandle":
        """Open the repository containing ``path``.

        Raises:
            RepositoryStateError: Not a git repository, or a bare one
        """
        try:
            repo = Repo(path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError):
            raise RepositoryStateError(f"Not a git repository: {Path(path).resolve()}")
        if repo.bare:
            repo.close()
            raise RepositoryStateError(f"Repository has no worktree: {repo.git_dir}")
        return cls(repo)

    @property
    def repo(self) -> Repo:
        return self._repo

    @property
    def working_dir(self) -> Path:
        return Path(self._repo.working_tree_dir)

    def close(self) -> None:
        self._repo.close()

    def __enter__(self) -> "RepositoryHandle":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def current_branch(self) -> tuple[str, CommitId]:
        """Return (short name, head sha) of the checked-out branch.

        Raises:
            RepositoryStateError: Detached HEAD or a branch with no commits
        """
        head = self._repo.head
        if head.is_detached:
            raise RepositoryStateError("HEAD is detached; check out the branch to ship first")
        try:
            name = self._repo.active_branch.name
            sha = head.commit.hexsha
        except (TypeError, ValueError) as e:
            raise RepositoryStateError(f"Cannot read HEAD: {e}") from e
        return name, sha

    def ref_target(self, name: str, kind: BranchKind, remote_name: Optional[str] = None) -> Optional[CommitId]:
        """Commit a branch points at, or None when the branch does not exist."""
        if kind is BranchKind.REMOTE:
            if not remote_name:
                raise ValueError("remote_name is required for remote branches")
            ref = remote_ref(remote_name, name)
        else:
            ref = local_ref(name)
        try:
            return self._repo.git.rev_parse("--verify", "--quiet", f"{ref}^{{commit}}").strip()
        except GitCommandError:
            return None

    def is_ancestor(self, ancestor: CommitId, descendant: CommitId) -> bool:
        """True if ``ancestor`` is reachable from ``descendant`` (or equal)."""
        return self._repo.is_ancestor(ancestor, descendant)

    def is_dirty(self) -> bool:
        """Staged or unstaged changes to tracked files."""
        return self._repo.is_dirty(index=True, working_tree=True, untracked_files=False)

    def has_remote(self, remote_name: str) -> bool:
        return any(remote.name == remote_name for remote in self._repo.remotes)

    # ------------------------------------------------------------------
    # Local mutation
    # ------------------------------------------------------------------

    def checkout(self, name: str) -> None:
        """Check out a local branch into the worktree.

        Raises:
            RepositoryStateError: If git refuses the checkout
        """
        try:
            self._repo.git.checkout(name, "--")
        except GitCommandError as e:
            raise RepositoryStateError(f"Checkout of {name} failed: {git_error_text(e)}") from e
        log_debug("checked out branch", branch=name)

    def fast_forward(self, name: str, target: CommitId) -> None:
        """Move the checked-out branch ``name`` forward to ``target``.

        Never creates a merge commit; git refuses anything but a fast-forward.
        """
        current, _ = self.current_branch()
        if current != name:
            raise RepositoryStateError(f"Cannot fast-forward {name}: {current} is checked out")
        self._repo.git.merge("--ff-only", target)
        log_debug("fast-forwarded branch", branch=name, target=target)

    def delete_local_branch(self, name: str) -> None:
        """Delete a local branch, refusing if it holds unmerged commits."""
        self._repo.git.branch("-d", name)

    # ------------------------------------------------------------------
    # Network
    # ------------------------------------------------------------------

    def push(self, remote_name: str, refspec: str, env: Mapping[str, str]) -> None:
        with self._repo.git.custom_environment(**env):
            self._repo.git.push(remote_name, refspec)

    def delete_remote_branch(self, remote_name: str, name: str, env: Mapping[str, str]) -> None:
        with self._repo.git.custom_environment(**env):
            # Short name: git rejects deleting a ref the remote does not have
            self._repo.git.push(remote_name, "--delete", name)


__all__ = [
    "RepositoryHandle",
    "git_error_text",
    "local_ref",
    "remote_ref",
]
