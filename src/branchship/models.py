"""Data model and error taxonomy for a ship run.

Values in this module are read once per run and never mutated. A stage
either raises a ``RepositoryStateError`` (the repository cannot be read or
prepared) or returns an ``OperationOutcome``; the pipeline driver turns both
into a single ``ShipStatus``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


CommitId = str


class BranchshipError(Exception):
    """Base exception for branchship failures."""
    pass


class RepositoryStateError(BranchshipError):
    """Repository cannot be read or prepared (HEAD, worktree, refs)."""
    pass


class ReferenceNotFound(RepositoryStateError):
    """A named branch does not exist."""

    def __init__(self, name: str, kind: "BranchKind"):
        self.name = name
        self.kind = kind
        super().__init__(f"{kind.value.capitalize()} branch '{name}' not found")


class BranchKind(str, Enum):
    """Where a branch reference lives."""

    LOCAL = "local"
    REMOTE = "remote"


class MergeAnalysis(str, Enum):
    """Outcome of comparing trunk and feature histories."""

    UP_TO_DATE = "up_to_date"  # trunk already contains feature
    FAST_FORWARD = "fast_forward"  # trunk can move to feature head
    DIVERGED = "diverged"  # needs a real merge or rebase, refused


class Stage(str, Enum):
    """Pipeline stages in execution order."""

    CONFIRM = "confirm"
    RESOLVE = "resolve"
    CHECKOUT = "checkout"
    MERGE = "merge"
    PUBLISH = "publish"
    DELETE_REMOTE = "delete_remote"
    DELETE_LOCAL = "delete_local"


@dataclass(frozen=True)
class Branch:
    """A branch name with the commit it pointed at when it was read.

    ``name`` is the short name (``feature/x``), never ``refs/heads/feature/x``.
    """

    name: str
    kind: BranchKind
    head: CommitId

    @property
    def short_head(self) -> str:
        return self.head[:7]


@dataclass(frozen=True)
class OperationOutcome:
    """Result of a single stage."""

    stage: Stage
    ok: bool
    reason: Optional[str] = None

    @classmethod
    def success(cls, stage: Stage) -> "OperationOutcome":
        return cls(stage=stage, ok=True)

    @classmethod
    def failure(cls, stage: Stage, reason: str) -> "OperationOutcome":
        return cls(stage=stage, ok=False, reason=reason)

    def __bool__(self) -> bool:
        return self.ok


class ShipStatus(str, Enum):
    """Terminal status of a run, one per output message class."""

    CANCELLED = "cancelled"
    UP_TO_DATE = "up_to_date"
    NOT_FAST_FORWARD = "not_fast_forward"
    PUSH_FAILED = "push_failed"
    REMOTE_DELETE_FAILED = "remote_delete_failed"
    LOCAL_DELETE_FAILED = "local_delete_failed"
    REPOSITORY_ERROR = "repository_error"
    SUCCESS = "success"

    @property
    def exit_code(self) -> int:
        return 0 if self in _NORMAL_STATUSES else 1

    @property
    def symbol(self) -> str:
        return _STATUS_SYMBOLS[self]


_NORMAL_STATUSES = frozenset(
    {
        ShipStatus.CANCELLED,
        ShipStatus.UP_TO_DATE,
        ShipStatus.NOT_FAST_FORWARD,
        ShipStatus.SUCCESS,
    }
)

_STATUS_SYMBOLS = {
    ShipStatus.CANCELLED: "🚫",
    ShipStatus.UP_TO_DATE: "👍",
    ShipStatus.NOT_FAST_FORWARD: "⏭️ ",
    ShipStatus.PUSH_FAILED: "⛔",
    ShipStatus.REMOTE_DELETE_FAILED: "⚠️ ",
    ShipStatus.LOCAL_DELETE_FAILED: "🧹",
    ShipStatus.REPOSITORY_ERROR: "❌",
    ShipStatus.SUCCESS: "✅",
}
