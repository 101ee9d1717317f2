"""Remote backend adapters for fleetmatch."""

from .jamf_client import (
    JamfAPIError,
    JamfClassicClient,
    build_move_xml,
    build_policy_xml,
    category_of,
)

__all__ = [
    "JamfAPIError",
    "JamfClassicClient",
    "build_move_xml",
    "build_policy_xml",
    "category_of",
]
