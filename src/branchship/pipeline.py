"""Top-level driver for one ship run.

Stages run strictly in order and the first failure ends the run:

1. read the checked-out (feature) branch
2. ask the operator
3. resolve trunk, check it out, classify the histories
4. fast-forward trunk
5. push trunk
6. delete the remote feature branch
7. delete the local feature branch

Components raise ``RepositoryStateError`` or return ``OperationOutcome``;
this module turns both into a ``ShipReport``. Exiting the process is left to
the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .auth import AuthStrategy
from .cleanup import CleanupCoordinator
from .confirmation import ConfirmationGate
from .config_schema import ShipConfig
from .merge import MergeEngine
from .models import (
    Branch,
    BranchKind,
    MergeAnalysis,
    OperationOutcome,
    RepositoryStateError,
    ShipStatus,
    Stage,
)
from .observability import log_action, log_warning, timeit
from .publisher import RemotePublisher
from .repository import RepositoryHandle
from .resolver import BranchResolver


Echo = Callable[[str], None]


@dataclass(frozen=True)
class ShipReport:
    """Terminal result of a run."""

    status: ShipStatus
    branch: Optional[str] = None
    stage: Optional[Stage] = None
    reason: Optional[str] = None

    @property
    def exit_code(self) -> int:
        return self.status.exit_code

    @property
    def message(self) -> str:
        symbol = self.status.symbol
        status = self.status
        if status is ShipStatus.CANCELLED:
            return f"{symbol} Merge cancelled"
        if status is ShipStatus.UP_TO_DATE:
            return f"{symbol} Branch {self.branch} is already up-to-date"
        if status is ShipStatus.NOT_FAST_FORWARD:
            return f"{symbol} Merge is not a fast-forward: {self.reason}"
        if status is ShipStatus.PUSH_FAILED:
            return f"{symbol} Push failed: {self.reason}"
        if status is ShipStatus.REMOTE_DELETE_FAILED:
            return (
                f"{symbol} Remote deletion failed: {self.reason} "
                f"(local branch {self.branch} was kept)"
            )
        if status is ShipStatus.LOCAL_DELETE_FAILED:
            return (
                f"{symbol} Local deletion failed: {self.reason} "
                f"(remote branch {self.branch} is already deleted)"
            )
        if status is ShipStatus.REPOSITORY_ERROR:
            return f"{symbol} {self.reason}"
        return f"{symbol} Merge successful"


class ShipPipeline:
    """Runs confirm -> resolve -> merge -> publish -> cleanup once."""

    def __init__(
        self,
        handle: RepositoryHandle,
        *,
        auth: AuthStrategy,
        config: Optional[ShipConfig] = None,
        gate: Optional[ConfirmationGate] = None,
        echo: Echo = print,
        merge_engine: Optional[MergeEngine] = None,
        publisher: Optional[RemotePublisher] = None,
        cleanup: Optional[CleanupCoordinator] = None,
    ):
        self.config = config or ShipConfig()
        self.handle = handle
        self.auth = auth
        self.gate = gate or ConfirmationGate(self.config.confirm_token)
        self.echo = echo
        self.resolver = BranchResolver(handle, self.config.remote_name)
        self.merge_engine = merge_engine or MergeEngine(handle)
        self.publisher = publisher or RemotePublisher(handle, self.config.trunk_branch)
        self.cleanup = cleanup or CleanupCoordinator(handle, auth)
        self._stage: Stage = Stage.RESOLVE
        self._feature: Optional[Branch] = None

    def run(self) -> ShipReport:
        with timeit(
            "ship",
            trunk=self.config.trunk_branch,
            remote=self.config.remote_name,
        ) as info:
            try:
                report = self._run()
            except RepositoryStateError as e:
                report = ShipReport(
                    ShipStatus.REPOSITORY_ERROR,
                    branch=self._feature.name if self._feature else None,
                    stage=self._stage,
                    reason=str(e),
                )
            info["status"] = report.status.value
            info["branch"] = report.branch
            if report.exit_code != 0:
                info["outcome"] = "failed"
                info["stage"] = report.stage.value if report.stage else None
        return report

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _run(self) -> ShipReport:
        cfg = self.config

        self._stage = Stage.RESOLVE
        feature = self.resolver.resolve_head()
        self._feature = feature

        self._stage = Stage.CONFIRM
        if not self.gate.confirm(feature.name):
            log_action("confirm", outcome="declined", branch=feature.name)
            return ShipReport(ShipStatus.CANCELLED, branch=feature.name, stage=Stage.CONFIRM)
        log_action("confirm", branch=feature.name, head=feature.head)

        self._stage = Stage.RESOLVE
        trunk = self.resolver.resolve(cfg.trunk_branch, BranchKind.LOCAL)

        self._stage = Stage.CHECKOUT
        self.merge_engine.checkout(trunk)

        self._stage = Stage.MERGE
        analysis = self.merge_engine.analyze(trunk, feature)
        log_action("analyze", analysis=analysis.value, trunk=trunk.head, feature=feature.head)
        if analysis is MergeAnalysis.UP_TO_DATE:
            self._return_to(feature, trunk)
            return ShipReport(ShipStatus.UP_TO_DATE, branch=feature.name, stage=Stage.MERGE)
        if analysis is MergeAnalysis.DIVERGED:
            self._return_to(feature, trunk)
            return ShipReport(
                ShipStatus.NOT_FAST_FORWARD,
                branch=feature.name,
                stage=Stage.MERGE,
                reason=f"{trunk.name} has commits that {feature.name} does not contain",
            )

        self.echo(f"🚀 Fast-forward merge: {trunk.name} {trunk.short_head} -> {feature.short_head}")
        outcome = self._record(self.merge_engine.integrate(trunk, feature))
        if not outcome.ok:
            return self._failed(ShipStatus.REPOSITORY_ERROR, feature, outcome)

        self._stage = Stage.PUBLISH
        self.echo(f"Pushing {trunk.name} to {cfg.remote_name}...")
        outcome = self._record(self.publisher.publish(cfg.remote_name, self.auth))
        if not outcome.ok:
            return self._failed(ShipStatus.PUSH_FAILED, feature, outcome)
        self.echo("Push successful")

        self._stage = Stage.DELETE_REMOTE
        self.echo(f"Deleting remote branch {cfg.remote_name}/{feature.name}...")
        outcome = self._record(self.cleanup.delete_remote(feature, cfg.remote_name))
        if not outcome.ok:
            return self._failed(ShipStatus.REMOTE_DELETE_FAILED, feature, outcome)
        self.echo("🗑️  Remote branch deleted")

        self._stage = Stage.DELETE_LOCAL
        self.echo(f"Deleting local branch {feature.name}...")
        outcome = self._record(self.cleanup.delete_local(feature))
        if not outcome.ok:
            return self._failed(ShipStatus.LOCAL_DELETE_FAILED, feature, outcome)
        self.echo("🗑️  Local branch deleted")

        return ShipReport(ShipStatus.SUCCESS, branch=feature.name, stage=Stage.DELETE_LOCAL)

    def _return_to(self, feature: Branch, trunk: Branch) -> None:
        """Leave the operator on the branch they started from after a normal stop."""
        if feature.name != trunk.name:
            self._stage = Stage.CHECKOUT
            self.handle.checkout(feature.name)

    def _record(self, outcome: OperationOutcome) -> OperationOutcome:
        if outcome.ok:
            log_action(outcome.stage.value)
        else:
            log_warning(f"{outcome.stage.value} failed", reason=outcome.reason)
            log_action(outcome.stage.value, outcome="failed", reason=outcome.reason)
        return outcome

    def _failed(self, status: ShipStatus, feature: Branch, outcome: OperationOutcome) -> ShipReport:
        return ShipReport(status, branch=feature.name, stage=outcome.stage, reason=outcome.reason)
