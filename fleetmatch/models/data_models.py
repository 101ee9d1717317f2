"""
Core data models for the inventory reconciliation engine.

This module contains the following dataclasses:
- ApplicationRecord: One row of an application export
- MatchResult: An application paired with the catalogue label it claimed
- DisplayItem: View-level row (matched application or bare label)
- DeploymentConfig: Parameters shared by every policy in a deployment run
- MutationTarget: A backend record addressed by a move/delete run
- OperationResult: Outcome of one item in a bulk run
- BulkRunSummary: Aggregated outcome of a bulk run
- HydratedRecord: Summary record with optional fetched detail
"""

from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, TypeVar

from .enums import OperationKind

# Platform shown for labels that no application claimed
UNMATCHED_PLATFORM = "Installomator"

T = TypeVar("T")


@dataclass(frozen=True)
class ApplicationRecord:
    """Represents one application parsed from an export file."""
    name: str                         # Display name from the first column
    platform: str                     # Raw second-column value, not validated
    source_row: str                   # Original row text
    priority: int = 0                 # Lower rank claims labels first

    @property
    def is_mac(self) -> bool:
        return "mac" in self.platform.lower()


@dataclass(frozen=True)
class MatchResult:
    """An application that claimed a catalogue label."""
    application: ApplicationRecord
    matched_label: str

    @property
    def id(self) -> str:
        """Stable key: labels are claimed at most once per run."""
        return self.matched_label


@dataclass(frozen=True)
class DisplayItem:
    """A row in either view mode; computed, never mutated."""
    label: str
    application: Optional[ApplicationRecord] = None

    @property
    def id(self) -> str:
        return self.label

    @property
    def is_matched(self) -> bool:
        return self.application is not None

    @property
    def display_name(self) -> str:
        return self.application.name if self.application is not None else self.label

    @property
    def platform(self) -> str:
        if self.application is not None:
            return self.application.platform
        return UNMATCHED_PLATFORM


@dataclass(frozen=True)
class DeploymentConfig:
    """Parameters applied to every policy created by a deployment run."""
    category_name: str
    script_id: str
    feature_on_main_page: bool = False
    display_in_category: bool = True

    def __post_init__(self) -> None:
        if not self.category_name.strip():
            raise ValueError("category_name must not be empty")
        if not str(self.script_id).strip():
            raise ValueError("script_id must not be empty")


@dataclass(frozen=True)
class MutationTarget:
    """A backend record to move or delete."""
    record_id: int
    name: str
    category: Optional[str] = None    # Current category, recorded on moves


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a single item in a bulk run."""
    item_name: str
    success: bool
    error: Optional[str] = None
    from_category: Optional[str] = None
    to_category: Optional[str] = None
    record_id: Optional[int] = None


@dataclass
class BulkRunSummary:
    """Aggregated results of one bulk pipeline run, in submission order."""
    operation: OperationKind
    results: List[OperationResult] = field(default_factory=list)
    duration_seconds: float = 0.0
    cancelled: bool = False

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failure_count(self) -> int:
        return len(self.results) - self.success_count

    @property
    def all_succeeded(self) -> bool:
        return self.failure_count == 0


@dataclass(frozen=True)
class HydratedRecord(Generic[T]):
    """A summary record plus its detail payload when the fetch succeeded."""
    summary: T
    detail: Optional[Any] = None
    error: Optional[str] = None

    @property
    def is_enriched(self) -> bool:
        return self.error is None and self.detail is not None
