"""
Enums shared across the reconciliation and deployment engine.

- SourcePlatform: Import slot an application export came from (carries rank)
- ViewMode: Matched-only vs. all-labels projection of the match set
- RecordKind: Backend record types handled by the mutation pipeline
- OperationKind: Bulk operation performed by a pipeline run
"""

from enum import Enum


class SourcePlatform(Enum):
    """Application export slots, in precedence order."""
    MACOS = "mac"       # Claims labels first
    WINDOWS = "pc"      # Only gets labels macOS exports left unclaimed

    @property
    def rank(self) -> int:
        """Priority used to order records before matching (lower wins)."""
        return 0 if self is SourcePlatform.MACOS else 1


class ViewMode(Enum):
    """Projection of the match set shown to the user."""
    MATCHED_ONLY = "matched"
    ALL_LABELS = "all"


class RecordKind(Enum):
    """Backend record types that support move/delete."""
    POLICY = "policy"
    PROFILE = "profile"


class OperationKind(Enum):
    """Kind of bulk operation recorded in a run."""
    DEPLOY = "deploy"
    MOVE = "move"
    DELETE = "delete"
