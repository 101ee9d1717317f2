"""Fleetmatch - Fleet Inventory Reconciliation.

A Python application for matching installed-application exports against a
deployment label catalogue and bulk-creating install policies for the
matched labels.
"""

__version__ = "1.0.0"

from .models import (
    ApplicationRecord,
    BulkRunSummary,
    DeploymentConfig,
    DisplayItem,
    HydratedRecord,
    MatchResult,
    MutationTarget,
    OperationKind,
    OperationResult,
    RecordKind,
    SourcePlatform,
    ViewMode,
)

__all__ = [
    "__version__",
    "ApplicationRecord",
    "BulkRunSummary",
    "DeploymentConfig",
    "DisplayItem",
    "HydratedRecord",
    "MatchResult",
    "MutationTarget",
    "OperationKind",
    "OperationResult",
    "RecordKind",
    "SourcePlatform",
    "ViewMode",
]


def main() -> None:
    """Entry point for the fleetmatch CLI application.

    Imports and runs the Typer app from the fleetmatch.cli module.
    """
    from fleetmatch.cli import app
    app()
