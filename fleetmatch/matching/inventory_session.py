"""InventorySession: owner of the imported inventories and the match set.

The session is an explicitly constructed service. It holds the label
catalogue and the two application exports, runs the matcher on a
background worker and publishes the finished match set atomically.
Inputs and published matches are replaced, never mutated in place.

Example:
    from fleetmatch.importing import InventoryStore
    from fleetmatch.matching import InventorySession

    session = InventorySession(store=InventoryStore(app_dir))
    session.restore()
    matches = session.run_matching().result()
    items = session.display_items(ViewMode.ALL_LABELS)
"""

import logging
import threading
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple

from fleetmatch.importing import (
    InventoryStore,
    StoreSlot,
    parse_application_export,
    parse_label_catalogue,
)
from fleetmatch.models import (
    UNMATCHED_PLATFORM,
    ApplicationRecord,
    DisplayItem,
    MatchResult,
    SourcePlatform,
    ViewMode,
)

from .label_matcher import LabelMatcher

logger = logging.getLogger(__name__)

# Platform filter value that disables platform filtering
ALL_PLATFORMS = "All"

_SLOT_FOR_SOURCE = {
    SourcePlatform.MACOS: StoreSlot.MAC_APPS,
    SourcePlatform.WINDOWS: StoreSlot.PC_APPS,
}


class InventorySession:
    """Holds imported inventories and the published match set.

    Attributes:
        labels_source: Name of the file the catalogue was loaded from.
        application_sources: Source file name per loaded export slot.
    """

    def __init__(
        self,
        store: Optional[InventoryStore] = None,
        matcher: Optional[LabelMatcher] = None,
    ) -> None:
        """Initialize an empty session.

        Args:
            store: Optional persistence port. Imports are saved to it and
                restore() reads from it.
            matcher: Optional LabelMatcher. Defaults to a new instance.
        """
        self._store = store
        self._matcher = matcher if matcher is not None else LabelMatcher()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="label-matcher")
        self._lock = threading.Lock()

        self._labels: Tuple[str, ...] = ()
        self._applications: Dict[SourcePlatform, Tuple[ApplicationRecord, ...]] = {}
        self._matches: Tuple[MatchResult, ...] = ()
        self._pending: Optional[Future] = None
        # Incremented on every input change or reset
        self._generation = 0

        self.labels_source: Optional[str] = None
        self.application_sources: Dict[SourcePlatform, str] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_labels(self, content: str, source_name: str = "labels.txt", persist: bool = True) -> int:
        """Replace the label catalogue.

        Args:
            content: Raw catalogue text.
            source_name: File name shown to the user.
            persist: Save the raw content to the store, if one is set.

        Returns:
            Number of labels loaded.
        """
        labels = tuple(parse_label_catalogue(content))
        with self._lock:
            self._labels = labels
            self._matches = ()
            self._generation += 1
        self.labels_source = source_name
        if persist and self._store is not None:
            self._store.save(StoreSlot.LABELS, content)
        logger.info("Loaded %d labels from %s", len(labels), source_name)
        return len(labels)

    def load_applications(
        self,
        source: SourcePlatform,
        content: str,
        source_name: str = "apps.csv",
        persist: bool = True,
    ) -> int:
        """Replace one application export slot.

        Returns:
            Number of application records loaded.
        """
        records = tuple(parse_application_export(content, source))
        with self._lock:
            self._applications[source] = records
            self._matches = ()
            self._generation += 1
        self.application_sources[source] = source_name
        if persist and self._store is not None:
            self._store.save(_SLOT_FOR_SOURCE[source], content)
        logger.info("Loaded %d %s applications from %s", len(records), source.value, source_name)
        return len(records)

    def restore(self) -> List[StoreSlot]:
        """Reload every file present in the store without re-saving it.

        Returns:
            Slots that were restored.
        """
        if self._store is None:
            return []

        restored: List[StoreSlot] = []
        for slot, content in self._store.load_all().items():
            if slot is StoreSlot.LABELS:
                self.load_labels(content, "Saved Labels.txt", persist=False)
            elif slot is StoreSlot.MAC_APPS:
                self.load_applications(SourcePlatform.MACOS, content, "Saved MacApps.csv", persist=False)
            else:
                self.load_applications(SourcePlatform.WINDOWS, content, "Saved PCApps.csv", persist=False)
            restored.append(slot)
        return restored

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    @property
    def labels(self) -> Tuple[str, ...]:
        return self._labels

    @property
    def all_labels(self) -> List[str]:
        """Catalogue labels in ascending order."""
        return sorted(self._labels)

    @property
    def applications(self) -> List[ApplicationRecord]:
        """Every loaded application, macOS slot first."""
        with self._lock:
            return [
                app
                for source in (SourcePlatform.MACOS, SourcePlatform.WINDOWS)
                for app in self._applications.get(source, ())
            ]

    def applications_for(self, source: SourcePlatform) -> List[ApplicationRecord]:
        with self._lock:
            return list(self._applications.get(source, ()))

    @property
    def matches(self) -> List[MatchResult]:
        """The most recently published match set."""
        return list(self._matches)

    @property
    def can_run_matching(self) -> bool:
        """True when a catalogue and at least one application list are loaded."""
        with self._lock:
            has_apps = any(self._applications.get(s) for s in SourcePlatform)
            return bool(self._labels) and has_apps

    @property
    def is_processing(self) -> bool:
        pending = self._pending
        return pending is not None and not pending.done()

    def run_matching(self) -> "Future[List[MatchResult]]":
        """Start a matching pass on the background worker.

        Inputs are snapshotted when the call is made. The result is
        published only after the full pass completes. A pass whose inputs
        were replaced or reset while it ran publishes nothing and resolves
        to an empty list.

        Returns:
            Future resolving to the published match list. Resolves to an
            empty list, publishing nothing, when inputs are missing.
        """
        if not self.can_run_matching:
            future: Future = Future()
            future.set_result([])
            return future

        with self._lock:
            labels = self._labels
            generation = self._generation
            applications = [
                app
                for source in (SourcePlatform.MACOS, SourcePlatform.WINDOWS)
                for app in self._applications.get(source, ())
            ]

        future = self._executor.submit(self._match_and_publish, applications, labels, generation)
        self._pending = future
        return future

    def reset(self) -> None:
        """Discard the published match set but keep loaded inputs."""
        with self._lock:
            self._matches = ()
            self._generation += 1

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    def suggestions(self) -> List[Tuple[ApplicationRecord, str, float]]:
        """Near-miss labels for applications that did not match."""
        matched_apps = {m.application for m in self._matches}
        suggestions: List[Tuple[ApplicationRecord, str, float]] = []
        for app in self.applications:
            if app in matched_apps:
                continue
            if self._matcher.match_label(app.name, self._labels) is not None:
                # Matched a label another application had already claimed
                continue
            suggestion = self._matcher.suggest_label(app.name, self._labels)
            if suggestion is not None:
                label, score = suggestion
                suggestions.append((app, label, score))
        return suggestions

    def _match_and_publish(
        self,
        applications: Sequence[ApplicationRecord],
        labels: Sequence[str],
        generation: int,
    ) -> List[MatchResult]:
        logger.debug("Matching %d applications against %d labels", len(applications), len(labels))
        found = self._matcher.find_matches(applications, labels)
        with self._lock:
            if generation != self._generation:
                logger.info("Inputs changed during matching; discarding %d stale matches", len(found))
                return []
            self._matches = tuple(found)
        logger.info("Matching complete: %d matches", len(found))
        return found

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    def display_items(self, mode: ViewMode) -> List[DisplayItem]:
        """Project the match set for a view mode.

        Matched-only yields one item per match in match order. All-labels
        yields one item per sorted catalogue label, carrying the claiming
        application when there is one.
        """
        matches = self._matches
        if mode is ViewMode.MATCHED_ONLY:
            return [DisplayItem(label=m.matched_label, application=m.application) for m in matches]

        by_label = {m.matched_label: m.application for m in matches}
        return [DisplayItem(label=label, application=by_label.get(label)) for label in self.all_labels]

    @staticmethod
    def filter_items(
        items: Sequence[DisplayItem],
        search_text: str = "",
        platform_filter: str = ALL_PLATFORMS,
    ) -> List[DisplayItem]:
        """Filter display items by search text and platform.

        Args:
            items: Items to filter.
            search_text: Case-insensitive substring of the display name or
                label. Empty matches everything.
            platform_filter: "All", an exact platform string, or
                "Installomator" for unmatched labels.
        """
        needle = search_text.casefold()
        filtered: List[DisplayItem] = []
        for item in items:
            text_match = (
                not needle
                or needle in item.display_name.casefold()
                or needle in item.label.casefold()
            )
            platform_match = (
                platform_filter == ALL_PLATFORMS
                or item.platform == platform_filter
                or (not item.is_matched and platform_filter == UNMATCHED_PLATFORM)
            )
            if text_match and platform_match:
                filtered.append(item)
        return filtered

    @staticmethod
    def group_items(items: Sequence[DisplayItem]) -> List[Tuple[str, List[DisplayItem]]]:
        """Group items by platform, groups sorted by platform name."""
        groups: Dict[str, List[DisplayItem]] = defaultdict(list)
        for item in items:
            groups[item.platform].append(item)
        return sorted(groups.items(), key=lambda group: group[0])
