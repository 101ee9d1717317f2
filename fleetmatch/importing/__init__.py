"""Import package for fleetmatch.

Parses the label catalogue and application export formats, and persists
imported files between sessions.

Example:
    >>> from fleetmatch.importing import InventoryStore, parse_application_export
    >>> apps = parse_application_export(csv_text)
"""

from .inventory_store import InventoryStore, StoreSlot
from .parsers import parse_application_export, parse_label_catalogue

__all__ = [
    "InventoryStore",
    "StoreSlot",
    "parse_application_export",
    "parse_label_catalogue",
]
