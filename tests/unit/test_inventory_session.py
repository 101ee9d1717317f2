"""Unit tests for InventorySession loading, matching and projections."""

import threading
from unittest.mock import MagicMock

import pytest

from fleetmatch.importing import InventoryStore, StoreSlot
from fleetmatch.matching import ALL_PLATFORMS, InventorySession, LabelMatcher
from fleetmatch.models import DisplayItem, SourcePlatform, ViewMode


@pytest.mark.unit
class TestLoading:
    """Tests for imports, persistence and restore."""

    def test_load_persists_raw_content(self, store: InventoryStore, label_catalogue: str):
        session = InventorySession(store=store)
        count = session.load_labels(label_catalogue, "labels.txt")

        assert count == 6
        assert store.load(StoreSlot.LABELS) == label_catalogue
        assert session.labels_source == "labels.txt"

    def test_load_without_persist(self, store: InventoryStore, mac_export: str):
        session = InventorySession(store=store)
        session.load_applications(SourcePlatform.MACOS, mac_export, persist=False)
        assert store.load(StoreSlot.MAC_APPS) is None

    def test_restore_reloads_saved_files(
        self, store: InventoryStore, label_catalogue: str, mac_export: str
    ):
        """A new session picks up every saved file without re-saving."""
        store.save(StoreSlot.LABELS, label_catalogue)
        store.save(StoreSlot.MAC_APPS, mac_export)

        session = InventorySession(store=store)
        restored = session.restore()

        assert restored == [StoreSlot.LABELS, StoreSlot.MAC_APPS]
        assert len(session.labels) == 6
        assert len(session.applications_for(SourcePlatform.MACOS)) == 4
        assert session.labels_source == "Saved Labels.txt"
        session.shutdown()

    def test_restore_without_store(self):
        assert InventorySession().restore() == []

    def test_applications_list_mac_slot_first(self, loaded_session: InventorySession):
        platforms = [app.platform for app in loaded_session.applications]
        assert platforms == ["Mac"] * 4 + ["PC"] * 3

    def test_reload_discards_published_matches(
        self, loaded_session: InventorySession, label_catalogue: str
    ):
        """Replacing an input invalidates the match set."""
        assert loaded_session.matches
        loaded_session.load_labels(label_catalogue, persist=False)
        assert loaded_session.matches == []


@pytest.mark.unit
class TestMatching:
    """Tests for the background matching pass."""

    def test_can_run_matching_requires_labels_and_apps(self, label_catalogue: str, pc_export: str):
        session = InventorySession()
        assert not session.can_run_matching
        session.load_labels(label_catalogue)
        assert not session.can_run_matching
        session.load_applications(SourcePlatform.WINDOWS, pc_export)
        assert session.can_run_matching

    def test_missing_inputs_resolve_to_empty(self):
        """The matcher never throws; missing inputs give an empty result."""
        session = InventorySession()
        assert session.run_matching().result(timeout=1) == []
        assert session.matches == []

    def test_matches_published_after_pass(self, loaded_session: InventorySession):
        matches = loaded_session.matches
        assert [(m.application.name, m.matched_label) for m in matches] == [
            ("Google Chrome", "googlechrome"),
            ("Slack", "slack"),
            ("Zoom", "zoom"),
            ("Firefox", "firefox"),
            ("Microsoft Teams", "microsoftteams"),
        ]

    def test_mac_zoom_claims_label(self, loaded_session: InventorySession):
        zoom = [m for m in loaded_session.matches if m.matched_label == "zoom"]
        assert len(zoom) == 1
        assert zoom[0].application.platform == "Mac"

    def test_nothing_published_until_pass_completes(self, label_catalogue: str, mac_export: str):
        """Readers see the previous set while a pass is in flight."""
        release = threading.Event()
        matcher = LabelMatcher()
        original = matcher.find_matches

        def slow_find(applications, labels):
            release.wait(timeout=5)
            return original(applications, labels)

        matcher.find_matches = MagicMock(side_effect=slow_find)
        session = InventorySession(matcher=matcher)
        session.load_labels(label_catalogue)
        session.load_applications(SourcePlatform.MACOS, mac_export)

        future = session.run_matching()
        assert session.is_processing
        assert session.matches == []

        release.set()
        assert len(future.result(timeout=5)) == 3
        assert len(session.matches) == 3
        assert not session.is_processing
        session.shutdown()

    def test_reload_during_pass_discards_stale_result(self, mac_export: str):
        """A pass started before a catalogue reload never publishes."""
        release = threading.Event()
        matcher = LabelMatcher()
        original = matcher.find_matches

        def slow_find(applications, labels):
            release.wait(timeout=5)
            return original(applications, labels)

        matcher.find_matches = MagicMock(side_effect=slow_find)
        session = InventorySession(matcher=matcher)
        session.load_labels("zoom\nslack\n")
        session.load_applications(SourcePlatform.MACOS, mac_export)

        future = session.run_matching()
        session.load_labels("firefox\n")
        release.set()

        assert future.result(timeout=5) == []
        assert session.labels == ("firefox",)
        assert session.matches == []
        session.shutdown()

    def test_reset_during_pass_discards_stale_result(self, label_catalogue: str, mac_export: str):
        release = threading.Event()
        matcher = LabelMatcher()
        original = matcher.find_matches

        def slow_find(applications, labels):
            release.wait(timeout=5)
            return original(applications, labels)

        matcher.find_matches = MagicMock(side_effect=slow_find)
        session = InventorySession(matcher=matcher)
        session.load_labels(label_catalogue)
        session.load_applications(SourcePlatform.MACOS, mac_export)

        future = session.run_matching()
        session.reset()
        release.set()

        assert future.result(timeout=5) == []
        assert session.matches == []

        # A fresh pass after the reset publishes normally
        assert len(session.run_matching().result(timeout=5)) == 3
        session.shutdown()

    def test_reset_keeps_inputs(self, loaded_session: InventorySession):
        loaded_session.reset()
        assert loaded_session.matches == []
        assert loaded_session.can_run_matching

    def test_suggestions_skip_matched_and_claimed(self):
        session = InventorySession()
        session.load_labels("firefox\nzoom\n")
        session.load_applications(
            SourcePlatform.MACOS, "Name,Platform\nFirefx,Mac\nZoom,Mac\nXcode,Mac\n"
        )
        session.load_applications(SourcePlatform.WINDOWS, "Name,Platform\nZoom,PC\n")
        session.run_matching().result(timeout=5)

        suggestions = session.suggestions()

        assert [(app.name, label) for app, label, _ in suggestions] == [("Firefx", "firefox")]
        session.shutdown()


@pytest.mark.unit
class TestProjections:
    """Tests for display items, filtering and grouping."""

    def test_matched_only_mode(self, loaded_session: InventorySession):
        items = loaded_session.display_items(ViewMode.MATCHED_ONLY)
        assert all(item.is_matched for item in items)
        assert [item.id for item in items] == [m.matched_label for m in loaded_session.matches]

    def test_all_labels_mode_sorted_with_unmatched(self, loaded_session: InventorySession):
        items = loaded_session.display_items(ViewMode.ALL_LABELS)

        assert [item.label for item in items] == sorted(loaded_session.labels)
        unmatched = [item for item in items if not item.is_matched]
        assert [item.label for item in unmatched] == ["zoomclient"]
        assert unmatched[0].platform == "Installomator"
        assert unmatched[0].display_name == "zoomclient"

    def test_filter_by_search_text_is_case_insensitive(self, loaded_session: InventorySession):
        items = loaded_session.display_items(ViewMode.ALL_LABELS)
        filtered = InventorySession.filter_items(items, search_text="ZOOM")
        assert [item.label for item in filtered] == ["zoom", "zoomclient"]

    def test_filter_by_platform(self, loaded_session: InventorySession):
        items = loaded_session.display_items(ViewMode.ALL_LABELS)
        filtered = InventorySession.filter_items(items, platform_filter="PC")
        assert {item.display_name for item in filtered} == {"Firefox", "Microsoft Teams"}

    def test_filter_unmatched_labels(self, loaded_session: InventorySession):
        items = loaded_session.display_items(ViewMode.ALL_LABELS)
        filtered = InventorySession.filter_items(items, platform_filter="Installomator")
        assert [item.label for item in filtered] == ["zoomclient"]

    def test_filter_all_returns_everything(self, loaded_session: InventorySession):
        items = loaded_session.display_items(ViewMode.ALL_LABELS)
        assert InventorySession.filter_items(items, "", ALL_PLATFORMS) == items

    def test_group_items_sorted_by_platform(self, make_app):
        items = [
            DisplayItem("zoom", make_app("Zoom", "PC")),
            DisplayItem("slack", make_app("Slack", "Mac")),
            DisplayItem("zoomclient"),
        ]

        groups = InventorySession.group_items(items)

        assert [platform for platform, _ in groups] == ["Installomator", "Mac", "PC"]
