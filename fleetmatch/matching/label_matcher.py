"""Label matching implementation for fleetmatch.

This module provides the LabelMatcher class which pairs application
records with catalogue labels using a two-pass algorithm, evaluated per
application in priority order:
    1. Exact match: a label equals the normalized application name.
    2. Containment: the longest label contained in the normalized name.

Each label can be claimed once. Records are stable-sorted by priority
before the pass, so a lower-ranked (macOS) export claims a label before a
higher-ranked (Windows) one can.

Example:
    >>> from fleetmatch.matching import LabelMatcher
    >>> matcher = LabelMatcher()
    >>> matches = matcher.find_matches(applications, ["zoom", "zoomclient"])
    >>> for match in matches:
    ...     print(f"{match.application.name} -> {match.matched_label}")
"""

from typing import Iterable, List, Optional, Sequence, Set, Tuple

from rapidfuzz import fuzz

from fleetmatch.models import ApplicationRecord, MatchResult

from .normalizer import normalize_name


class LabelMatcher:
    """Matches applications to catalogue labels.

    Attributes:
        suggestion_cutoff: Minimum rapidfuzz ratio (0-100) for a label to be
            offered as a near-miss suggestion for an unmatched application.
    """

    def __init__(self, suggestion_cutoff: float = 80.0) -> None:
        """Initialize the LabelMatcher.

        Args:
            suggestion_cutoff: Similarity threshold for suggestions.
                Must be between 0 and 100.

        Raises:
            ValueError: If suggestion_cutoff is out of range.
        """
        if not 0.0 <= suggestion_cutoff <= 100.0:
            raise ValueError(
                f"suggestion_cutoff must be between 0 and 100, got {suggestion_cutoff}"
            )
        self.suggestion_cutoff = suggestion_cutoff

    def find_matches(
        self,
        applications: Iterable[ApplicationRecord],
        labels: Sequence[str],
    ) -> List[MatchResult]:
        """Match applications against the catalogue.

        Args:
            applications: Records to match. Order within a priority rank is
                preserved.
            labels: Catalogue labels, in catalogue order.

        Returns:
            One MatchResult per application that claimed a label, sorted by
            platform then application name. Empty inputs yield an empty list.
        """
        if not labels:
            return []

        ordered = sorted(applications, key=lambda app: app.priority)
        label_set = set(labels)
        claimed: Set[str] = set()
        results: List[MatchResult] = []

        for app in ordered:
            label = self.match_label(app.name, labels, label_set)
            if label is None:
                continue
            # First claim wins; later applications never overwrite it
            if label in claimed:
                continue
            claimed.add(label)
            results.append(MatchResult(application=app, matched_label=label))

        results.sort(key=lambda m: (m.application.platform, m.application.name))
        return results

    def match_label(
        self,
        name: str,
        labels: Sequence[str],
        label_set: Optional[Set[str]] = None,
    ) -> Optional[str]:
        """Find the label for a single application name, ignoring claims.

        Args:
            name: Application display name.
            labels: Catalogue labels, in catalogue order.
            label_set: Optional precomputed set of labels for the exact pass.

        Returns:
            The exact-match label, else the longest contained label, else None.
        """
        normalized = normalize_name(name)
        if not normalized:
            return None

        if label_set is None:
            label_set = set(labels)
        if normalized in label_set:
            return normalized

        return self._longest_contained(normalized, labels)

    def suggest_label(
        self, name: str, labels: Sequence[str]
    ) -> Optional[Tuple[str, float]]:
        """Return the closest catalogue label for an unmatched name.

        Diagnostic only: suggestions never enter the match set.

        Returns:
            Tuple of (label, score) if the best ratio reaches the cutoff,
            None otherwise.
        """
        normalized = normalize_name(name)
        if not normalized or not labels:
            return None

        best_label: Optional[str] = None
        best_score = 0.0
        for label in labels:
            score = fuzz.ratio(normalized, normalize_name(label))
            if score > best_score:
                best_label, best_score = label, score

        if best_label is None or best_score < self.suggestion_cutoff:
            return None
        return best_label, best_score

    def _longest_contained(self, normalized: str, labels: Sequence[str]) -> Optional[str]:
        """Containment pass.

        Ties on length keep the first label in catalogue order. That order
        is the only source of variation between runs over reordered
        catalogues.
        """
        best: Optional[str] = None
        for label in labels:
            if label and label in normalized:
                if best is None or len(label) > len(best):
                    best = label
        return best
