"""Branch name to Branch value lookup."""

from __future__ import annotations

from .models import Branch, BranchKind, ReferenceNotFound
from .repository import RepositoryHandle


class BranchResolver:
    """Reads branch heads from the repository.

    Values are snapshots: re-resolving after a checkout or fast-forward
    returns a new Branch rather than updating an old one.
    """

    def __init__(self, handle: RepositoryHandle, remote_name: str = "origin"):
        self._handle = handle
        self.remote_name = remote_name

    def resolve_head(self) -> Branch:
        """The checked-out branch; raises RepositoryStateError when detached."""
        name, sha = self._handle.current_branch()
        return Branch(name=name, kind=BranchKind.LOCAL, head=sha)

    def resolve(self, name: str, kind: BranchKind = BranchKind.LOCAL) -> Branch:
        """Look up ``name``; remote branches are read from ``<remote>/<name>``.

        Raises:
            ReferenceNotFound: If the branch does not exist
        """
        sha = self._handle.ref_target(name, kind, remote_name=self.remote_name)
        if sha is None:
            raise ReferenceNotFound(name, kind)
        return Branch(name=name, kind=kind, head=sha)
