"""branchship: fast-forward a feature branch into trunk, publish, then clean up."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("branchship")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"  # Fallback for editable installs without metadata

from .models import Branch, BranchKind, MergeAnalysis, OperationOutcome, ShipStatus  # noqa: F401
from .pipeline import ShipPipeline, ShipReport  # noqa: F401

__all__ = [
    "Branch",
    "BranchKind",
    "MergeAnalysis",
    "OperationOutcome",
    "ShipPipeline",
    "ShipReport",
    "ShipStatus",
    "__version__",
]
