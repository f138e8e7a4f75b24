from __future__ import annotations

import pytest

from branchship.models import BranchKind, ReferenceNotFound, RepositoryStateError
from branchship.repository import RepositoryHandle
from branchship.resolver import BranchResolver

from conftest import commit_file


def test_resolve_head_returns_short_name(workspace):
    head = workspace.start_feature("feature/login", commits=1, push=False)
    with RepositoryHandle.open(workspace.path) as handle:
        branch = BranchResolver(handle).resolve_head()
    assert branch.name == "feature/login"
    assert not branch.name.startswith("refs/")
    assert branch.kind is BranchKind.LOCAL
    assert branch.head == head


def test_resolve_local_branch(workspace):
    with RepositoryHandle.open(workspace.path) as handle:
        branch = BranchResolver(handle).resolve("main")
    assert branch.head == workspace.main_sha()


def test_resolve_remote_tracking_branch(workspace):
    head = workspace.start_feature("feature", commits=2, push=True)
    with RepositoryHandle.open(workspace.path) as handle:
        branch = BranchResolver(handle, "origin").resolve("feature", BranchKind.REMOTE)
    assert branch.kind is BranchKind.REMOTE
    assert branch.head == head


def test_missing_branch_raises_reference_not_found(workspace):
    with RepositoryHandle.open(workspace.path) as handle:
        resolver = BranchResolver(handle)
        with pytest.raises(ReferenceNotFound) as exc:
            resolver.resolve("develop")
        with pytest.raises(ReferenceNotFound):
            resolver.resolve("feature", BranchKind.REMOTE)
    assert exc.value.name == "develop"
    assert "develop" in str(exc.value)
    assert isinstance(exc.value, RepositoryStateError)


def test_detached_head_is_a_repository_error(workspace):
    commit_file(workspace.repo, "other.txt", "x\n")
    workspace.repo.git.checkout("--detach", "HEAD")
    with RepositoryHandle.open(workspace.path) as handle:
        with pytest.raises(RepositoryStateError, match="detached"):
            BranchResolver(handle).resolve_head()


def test_snapshot_is_not_updated_by_later_commits(workspace):
    with RepositoryHandle.open(workspace.path) as handle:
        resolver = BranchResolver(handle)
        before = resolver.resolve_head()
        commit_file(workspace.repo, "more.txt", "more\n")
        after = resolver.resolve_head()
    assert before.head != after.head
    assert before.name == after.name
