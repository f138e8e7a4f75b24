from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

import pytest
from git import Actor, Repo


def pytest_sessionstart(session):  # type: ignore[override]
    root = Path(__file__).resolve().parents[1]
    src = root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))
    os.environ.setdefault("PYTHONPATH", str(src))


ACTOR = Actor("Test", "test@example.com")

_ISOLATED_ENV_VARS = (
    "BRANCHSHIP_TRUNK_BRANCH",
    "BRANCHSHIP_REMOTE",
    "BRANCHSHIP_CONFIRM_TOKEN",
    "BRANCHSHIP_AUTH_METHOD",
    "BRANCHSHIP_GIT_SSH_KEY",
    "BRANCHSHIP_GITHUB_TOKEN",
    "BRANCHSHIP_LOG_LEVEL",
    "BRANCHSHIP_LOG_DIR",
    "BRANCHSHIP_LOG_MAX_BYTES",
    "BRANCHSHIP_LOG_BACKUP_COUNT",
    "GITHUB_TOKEN",
    "GH_TOKEN",
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at an empty directory and clear branchship env vars."""
    from branchship.observability import reset_logging

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BRANCHSHIP_LOG_DISABLE_FILE", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", ACTOR.name)
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", ACTOR.email)
    monkeypatch.setenv("GIT_COMMITTER_NAME", ACTOR.name)
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", ACTOR.email)
    reset_logging()
    yield home
    reset_logging()


def commit_file(repo: Repo, filename: str, content: str, message: str | None = None) -> str:
    """Write a file, commit it, and return the new commit sha."""
    path = Path(repo.working_tree_dir) / filename
    path.write_text(content, encoding="utf-8")
    repo.index.add([filename])
    commit = repo.index.commit(message or f"Update {filename}", author=ACTOR, committer=ACTOR)
    return commit.hexsha


def ref_sha(repo: Repo, ref: str) -> str | None:
    """sha of a full ref name, or None when it does not exist."""
    for reference in repo.references:
        if reference.path == ref:
            return reference.commit.hexsha
    return None


def ref_snapshot(repo: Repo) -> dict[str, str]:
    return {reference.path: reference.commit.hexsha for reference in repo.references}


@dataclass
class Workspace:
    """A bare origin plus a clone with ``main`` pushed and tracked."""

    origin: Repo
    repo: Repo
    path: Path

    def start_feature(self, name: str = "feature", commits: int = 3, push: bool = True) -> str:
        """Branch off the current commit, add commits, optionally push. Returns the head sha."""
        self.repo.git.checkout("-b", name)
        for i in range(commits):
            commit_file(self.repo, f"{name.replace('/', '_')}_{i}.txt", f"change {i}\n")
        if push:
            self.repo.git.push("-u", "origin", name)
        return self.repo.head.commit.hexsha

    def main_sha(self) -> str:
        return self.repo.heads["main"].commit.hexsha


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    origin_path = tmp_path / "origin.git"
    origin = Repo.init(origin_path, bare=True)

    work_path = tmp_path / "work"
    repo = Repo.init(work_path)
    commit_file(repo, "README.md", "# Project\n", "Initial commit")
    repo.git.branch("-M", "main")
    repo.create_remote("origin", str(origin_path))
    repo.git.push("-u", "origin", "main")

    yield Workspace(origin=origin, repo=repo, path=work_path)

    repo.close()
    origin.close()
