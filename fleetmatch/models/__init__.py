"""
Models package for the inventory reconciliation engine.

This package provides convenient imports for all data models:
- SourcePlatform, ViewMode, RecordKind, OperationKind: Enums
- ApplicationRecord: Parsed application export row
- MatchResult: Application/label pairing
- DisplayItem: View-level row
- DeploymentConfig: Deployment parameters
- MutationTarget: Record addressed by move/delete
- OperationResult: Per-item bulk outcome
- BulkRunSummary: Aggregated bulk outcome
- HydratedRecord: Summary plus optional detail
"""

from .enums import OperationKind, RecordKind, SourcePlatform, ViewMode
from .data_models import (
    UNMATCHED_PLATFORM,
    ApplicationRecord,
    BulkRunSummary,
    DeploymentConfig,
    DisplayItem,
    HydratedRecord,
    MatchResult,
    MutationTarget,
    OperationResult,
)

__all__ = [
    "UNMATCHED_PLATFORM",
    "SourcePlatform",
    "ViewMode",
    "RecordKind",
    "OperationKind",
    "ApplicationRecord",
    "MatchResult",
    "DisplayItem",
    "DeploymentConfig",
    "MutationTarget",
    "OperationResult",
    "BulkRunSummary",
    "HydratedRecord",
]
