"""Name normalization used for label comparisons."""

import re

# Characters removed before comparing names
_SEPARATOR_PATTERN = re.compile(r"[ \-_.]")


def normalize_name(name: str) -> str:
    """Reduce a display name to its comparison key.

    Lower-cases the name and strips spaces, hyphens, underscores and
    periods. Total and side-effect free.

    Example:
        >>> normalize_name("Zoom Client-for_Windows 5.1")
        'zoomclientforwindows51'
    """
    return _SEPARATOR_PATTERN.sub("", name.lower())
