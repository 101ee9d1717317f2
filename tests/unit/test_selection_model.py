"""Unit tests for SelectionModel toggling, range selection and mode scoping."""

import pytest

from fleetmatch.models import DisplayItem, ViewMode
from fleetmatch.selection import SelectionModel


@pytest.fixture
def visible(make_app):
    """All-labels view: a, b (unmatched), c, d."""
    return [
        DisplayItem("a", make_app("A")),
        DisplayItem("b"),
        DisplayItem("c", make_app("C")),
        DisplayItem("d", make_app("D")),
    ]


@pytest.mark.unit
class TestToggle:
    """Tests for plain toggling."""

    def test_toggle_flips_membership_and_sets_anchor(self):
        selection = SelectionModel()
        selection.toggle("zoom")
        assert "zoom" in selection
        assert selection.anchor == "zoom"

        selection.toggle("zoom")
        assert "zoom" not in selection
        assert selection.count == 0

    def test_extend_without_anchor_is_plain_toggle(self, visible):
        selection = SelectionModel()
        selection.toggle("c", visible, extend=True)
        assert selection.selected_ids == frozenset({"c"})
        assert selection.anchor == "c"


@pytest.mark.unit
class TestRangeSelection:
    """Tests for extend-to-range selection."""

    def test_range_selects_between_anchor_and_target(self, visible):
        selection = SelectionModel(ViewMode.MATCHED_ONLY)
        selection.toggle("a")
        selection.toggle("d", visible, extend=True)

        assert selection.selected_ids == frozenset({"a", "b", "c", "d"})
        assert selection.anchor == "a"

    def test_range_skips_unmatched_in_all_labels_mode(self, visible):
        selection = SelectionModel(ViewMode.ALL_LABELS)
        selection.toggle("d")
        selection.toggle("a", visible, extend=True)

        assert selection.selected_ids == frozenset({"a", "c", "d"})

    def test_range_uses_visible_order(self, visible):
        """Only items between the ends in the filtered view are added."""
        filtered = [visible[0], visible[3]]
        selection = SelectionModel()
        selection.toggle("a")
        selection.toggle("d", filtered, extend=True)
        assert selection.selected_ids == frozenset({"a", "d"})

    def test_anchor_not_visible_changes_nothing(self, visible):
        selection = SelectionModel()
        selection.toggle("zzz")
        selection.toggle("c", visible, extend=True)
        assert selection.selected_ids == frozenset({"zzz"})


@pytest.mark.unit
class TestModeScoping:
    """Tests for mode switches and pruning."""

    def test_mode_switch_clears_selection_and_anchor(self):
        selection = SelectionModel(ViewMode.MATCHED_ONLY)
        selection.toggle("zoom")
        selection.set_mode(ViewMode.ALL_LABELS)
        assert selection.count == 0
        assert selection.anchor is None

    def test_same_mode_keeps_selection(self):
        selection = SelectionModel(ViewMode.MATCHED_ONLY)
        selection.toggle("zoom")
        selection.set_mode(ViewMode.MATCHED_ONLY)
        assert "zoom" in selection

    def test_prune_drops_stale_ids(self):
        selection = SelectionModel()
        selection.toggle("zoom")
        selection.toggle("slack")
        selection.prune(["slack"])
        assert selection.selected_ids == frozenset({"slack"})
        assert selection.anchor == "slack"

    def test_prune_clears_stale_anchor(self):
        selection = SelectionModel()
        selection.toggle("zoom")
        selection.prune([])
        assert selection.anchor is None
