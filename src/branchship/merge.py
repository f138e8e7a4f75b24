"""Fast-forward-only integration of the feature branch into trunk.

State machine for one run::

    checkout(trunk) --> analyze(trunk, feature)
                          |-- UP_TO_DATE    stop, nothing to publish
                          |-- DIVERGED      stop, no ref is touched
                          `-- FAST_FORWARD  integrate() --> publish

A real merge or rebase is never attempted.
"""

from __future__ import annotations

from git.exc import GitCommandError

from .models import Branch, MergeAnalysis, OperationOutcome, RepositoryStateError, Stage
from .observability import log_debug
from .repository import RepositoryHandle, git_error_text


class MergeEngine:
    """Checks out trunk, classifies the histories, and fast-forwards."""

    def __init__(self, handle: RepositoryHandle):
        self._handle = handle

    def checkout(self, trunk: Branch) -> None:
        """Switch the worktree to trunk.

        Raises:
            RepositoryStateError: Dirty worktree or a checkout git refuses
        """
        if self._handle.is_dirty():
            raise RepositoryStateError(
                "Working tree has uncommitted changes; commit or stash them before merging"
            )
        self._handle.checkout(trunk.name)

    def analyze(self, trunk: Branch, feature: Branch) -> MergeAnalysis:
        if self._handle.is_ancestor(feature.head, trunk.head):
            analysis = MergeAnalysis.UP_TO_DATE
        elif self._handle.is_ancestor(trunk.head, feature.head):
            analysis = MergeAnalysis.FAST_FORWARD
        else:
            analysis = MergeAnalysis.DIVERGED
        log_debug(
            "merge analysis",
            trunk=trunk.name,
            trunk_head=trunk.head,
            feature=feature.name,
            feature_head=feature.head,
            analysis=analysis.value,
        )
        return analysis

    def integrate(self, trunk: Branch, feature: Branch) -> OperationOutcome:
        """Advance trunk to the feature head.

        Re-checks the analysis so a caller can never integrate anything but
        a fast-forward.
        """
        analysis = self.analyze(trunk, feature)
        if analysis is not MergeAnalysis.FAST_FORWARD:
            return OperationOutcome.failure(
                Stage.MERGE, f"{feature.name} is not a fast-forward of {trunk.name} ({analysis.value})"
            )
        try:
            self._handle.fast_forward(trunk.name, feature.head)
        except GitCommandError as e:
            return OperationOutcome.failure(Stage.MERGE, git_error_text(e))
        except RepositoryStateError as e:
            return OperationOutcome.failure(Stage.MERGE, str(e))
        return OperationOutcome.success(Stage.MERGE)
