#!/usr/bin/env python3
"""branchship CLI - ship the checked-out branch into trunk."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from git.exc import GitCommandError

from . import __version__
from .auth import build_auth_strategy
from .config_loader import ConfigError, get_config_paths, load_config
from .confirmation import ConfirmationGate
from .models import BranchshipError
from .observability import configure_logging, log_debug, log_error
from .pipeline import ShipPipeline
from .repository import RepositoryHandle, git_error_text


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="branchship",
        description=(
            "Fast-forward the checked-out branch into trunk, push trunk, then delete "
            "the branch on the remote and locally. Settings come from "
            "~/.branchship/config.toml, .branchship/config.toml and BRANCHSHIP_* variables."
        ),
    )
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def run(cwd: Path | None = None) -> int:
    """Run one ship in ``cwd`` and return the process exit code."""
    cwd = cwd or Path.cwd()

    try:
        config = load_config(project_path=cwd)
        configure_logging(config.logging)
        paths = get_config_paths(cwd)
        log_debug("config loaded", user_config=paths["user_config"], project_config=paths["project_config"])
        auth = build_auth_strategy(config.auth)
    except ConfigError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        with RepositoryHandle.open(cwd) as handle:
            pipeline = ShipPipeline(
                handle,
                auth=auth,
                config=config.ship,
                gate=ConfirmationGate(config.ship.confirm_token),
            )
            report = pipeline.run()
    except BranchshipError as e:
        log_error("ship aborted", reason=str(e))
        print(f"❌ {e}")
        return 1
    except GitCommandError as e:
        log_error("git command failed", reason=git_error_text(e))
        print(f"❌ {git_error_text(e)}")
        return 1

    print(report.message)
    return report.exit_code


def main(argv: list[str] | None = None) -> None:
    _build_parser().parse_args(argv)
    sys.exit(run())


if __name__ == "__main__":
    main()
