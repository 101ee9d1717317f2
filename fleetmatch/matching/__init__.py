"""Label matching package for fleetmatch.

This package contains the name normalizer, the LabelMatcher algorithm and
the InventorySession service that owns imported inventories and the
published match set.

Example:
    >>> from fleetmatch.matching import LabelMatcher
    >>> matcher = LabelMatcher()
    >>> matches = matcher.find_matches(applications, labels)
"""

from .inventory_session import ALL_PLATFORMS, InventorySession
from .label_matcher import LabelMatcher
from .normalizer import normalize_name

__all__ = [
    "ALL_PLATFORMS",
    "InventorySession",
    "LabelMatcher",
    "normalize_name",
]
