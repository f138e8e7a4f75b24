"""Tests for pushing trunk."""

from __future__ import annotations

from branchship.auth import AmbientAuth, GitCredentials
from branchship.models import Stage
from branchship.publisher import RemotePublisher
from branchship.repository import RepositoryHandle

from conftest import commit_file, ref_sha


class CountingAuth:
    """Ambient credentials that record how often they were requested."""

    def __init__(self):
        self.calls = 0

    def credentials(self) -> GitCredentials:
        self.calls += 1
        return AmbientAuth().credentials()


def test_publish_updates_remote_trunk(workspace):
    head = commit_file(workspace.repo, "change.txt", "change\n")
    auth = CountingAuth()
    with RepositoryHandle.open(workspace.path) as handle:
        outcome = RemotePublisher(handle, "main").publish("origin", auth)
    assert outcome.ok
    assert outcome.stage is Stage.PUBLISH
    assert ref_sha(workspace.origin, "refs/heads/main") == head
    assert auth.calls == 1


def test_publish_pushes_trunk_not_current_branch(workspace):
    main_head = workspace.main_sha()
    workspace.start_feature(commits=1, push=False)
    with RepositoryHandle.open(workspace.path) as handle:
        outcome = RemotePublisher(handle, "main").publish("origin", AmbientAuth())
    assert outcome.ok
    assert ref_sha(workspace.origin, "refs/heads/main") == main_head
    assert ref_sha(workspace.origin, "refs/heads/feature") is None


def test_unknown_remote_fails_without_credentials(workspace):
    auth = CountingAuth()
    with RepositoryHandle.open(workspace.path) as handle:
        outcome = RemotePublisher(handle, "main").publish("upstream", auth)
    assert not outcome.ok
    assert "upstream" in outcome.reason
    assert auth.calls == 0


def test_unreachable_remote_is_a_failure_outcome(workspace, tmp_path):
    commit_file(workspace.repo, "change.txt", "change\n")
    workspace.repo.remotes.origin.set_url(str(tmp_path / "missing.git"))
    with RepositoryHandle.open(workspace.path) as handle:
        outcome = RemotePublisher(handle, "main").publish("origin", AmbientAuth())
    assert not outcome.ok
    assert outcome.reason


def test_remote_rejection_is_a_failure_outcome(workspace, tmp_path):
    from git import Repo

    other = Repo.clone_from(workspace.origin.git_dir, tmp_path / "other", branch="main")
    commit_file(other, "theirs.txt", "theirs\n")
    other.git.push("origin", "main")
    theirs = other.head.commit.hexsha
    other.close()

    commit_file(workspace.repo, "ours.txt", "ours\n")
    with RepositoryHandle.open(workspace.path) as handle:
        outcome = RemotePublisher(handle, "main").publish("origin", AmbientAuth())
    assert not outcome.ok
    assert ref_sha(workspace.origin, "refs/heads/main") == theirs
