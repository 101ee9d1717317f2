"""Selection state for the match views.

Tracks the selected display-item identifiers and the anchor used for
range selection. Selections are scoped to a view mode: switching modes
clears everything, while search or platform filtering never does.
"""

from typing import FrozenSet, Iterable, Optional, Sequence, Set

from fleetmatch.models import DisplayItem, ViewMode


class SelectionModel:
    """Set of selected item ids plus a range-select anchor.

    Attributes:
        mode: View mode the selection belongs to.

    Example:
        >>> selection = SelectionModel()
        >>> selection.toggle("zoom", visible)
        >>> selection.toggle("slack", visible, extend=True)
        >>> sorted(selection.selected_ids)
        ['chrome', 'slack', 'zoom']
    """

    def __init__(self, mode: ViewMode = ViewMode.MATCHED_ONLY) -> None:
        self.mode = mode
        self._selected: Set[str] = set()
        self._anchor: Optional[str] = None

    @property
    def selected_ids(self) -> FrozenSet[str]:
        return frozenset(self._selected)

    @property
    def anchor(self) -> Optional[str]:
        return self._anchor

    @property
    def count(self) -> int:
        return len(self._selected)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._selected

    def toggle(
        self,
        item_id: str,
        visible: Sequence[DisplayItem] = (),
        extend: bool = False,
    ) -> None:
        """Toggle an item, or extend the selection to it.

        Args:
            item_id: Identifier of the clicked item.
            visible: Items currently visible, in on-screen order (after
                filtering). Only used when extending.
            extend: True when the range modifier is held. With an anchor
                present, every selectable item between the anchor and
                item_id is added and the anchor is left unchanged. In
                all-labels mode only matched items are selectable by range.
                Without an anchor this is a plain toggle.
        """
        if extend and self._anchor is not None:
            self._select_range(self._anchor, item_id, visible)
            return

        if item_id in self._selected:
            self._selected.remove(item_id)
        else:
            self._selected.add(item_id)
        self._anchor = item_id

    def _select_range(self, anchor: str, item_id: str, visible: Sequence[DisplayItem]) -> None:
        ids = [item.id for item in visible]
        try:
            anchor_index = ids.index(anchor)
            current_index = ids.index(item_id)
        except ValueError:
            return

        start, end = min(anchor_index, current_index), max(anchor_index, current_index)
        for item in visible[start:end + 1]:
            if self.mode is ViewMode.ALL_LABELS and not item.is_matched:
                continue
            self._selected.add(item.id)

    def set_mode(self, mode: ViewMode) -> None:
        """Switch view mode, clearing the selection if it changes."""
        if mode is not self.mode:
            self.mode = mode
            self.clear()

    def clear(self) -> None:
        self._selected.clear()
        self._anchor = None

    def prune(self, valid_ids: Iterable[str]) -> None:
        """Drop identifiers that no longer exist after a reload."""
        valid = set(valid_ids)
        self._selected &= valid
        if self._anchor is not None and self._anchor not in valid:
            self._anchor = None
