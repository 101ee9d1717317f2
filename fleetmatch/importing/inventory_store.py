"""Persistence port for imported inventory files.

The store keeps the last imported catalogue and application exports
verbatim under fixed file names in a user-scoped directory, so that a new
session can reload them without prompting.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class StoreSlot(Enum):
    """Files the store knows about, keyed by fixed file name."""
    LABELS = "Commander_Saved_Labels.txt"
    MAC_APPS = "Commander_Saved_MacApps.csv"
    PC_APPS = "Commander_Saved_PCApps.csv"


class InventoryStore:
    """Reads and writes imported files under a single directory.

    Attributes:
        directory: Directory holding the saved files. Created lazily on
            the first save.

    Example:
        >>> store = InventoryStore(Path("~/.config/fleetmatch").expanduser())
        >>> store.save(StoreSlot.LABELS, "zoom\\nslack\\n")
        >>> store.load(StoreSlot.LABELS)
        'zoom\\nslack\\n'
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory).expanduser()

    def path_for(self, slot: StoreSlot) -> Path:
        return self.directory / slot.value

    def save(self, slot: StoreSlot, content: str) -> bool:
        """Write content verbatim for a slot.

        A failed write is logged and reported through the return value;
        it never fails the import that triggered it.

        Returns:
            True if the file was written.
        """
        path = self.path_for(slot)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to save %s: %s", slot.value, e)
            return False
        logger.debug("Saved %s to %s", slot.value, self.directory)
        return True

    def load(self, slot: StoreSlot) -> Optional[str]:
        """Return the saved content for a slot, or None if absent/unreadable."""
        path = self.path_for(slot)
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read %s: %s", path, e)
            return None

    def load_all(self) -> Dict[StoreSlot, str]:
        """Return every slot that has saved content."""
        loaded: Dict[StoreSlot, str] = {}
        for slot in StoreSlot:
            content = self.load(slot)
            if content is not None:
                loaded[slot] = content
        return loaded

    def saved_slots(self) -> List[StoreSlot]:
        return [slot for slot in StoreSlot if self.path_for(slot).is_file()]

    def clear(self) -> None:
        """Remove every saved file."""
        for slot in StoreSlot:
            path = self.path_for(slot)
            try:
                path.unlink()
            except FileNotFoundError:
                continue
