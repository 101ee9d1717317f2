"""Parsers for the label catalogue and application export files.

Both parsers are tolerant: malformed rows are dropped rather than failing
the whole import.

Example:
    >>> from fleetmatch.importing import parse_label_catalogue
    >>> parse_label_catalogue("zoom\\n\\n  zoomclient  \\nzoom\\n")
    ['zoom', 'zoomclient']
"""

import logging
from typing import List

from fleetmatch.models import ApplicationRecord, SourcePlatform

logger = logging.getLogger(__name__)


def parse_label_catalogue(content: str) -> List[str]:
    """Parse a newline-delimited label catalogue.

    Each line is stripped of surrounding whitespace; blank lines are
    discarded. The catalogue is an ordered set, so repeated labels keep
    only their first occurrence. Case and punctuation are left as-is:
    label files are expected to already be in matchable form.

    Args:
        content: Raw text of the catalogue file.

    Returns:
        Labels in file order, without duplicates.
    """
    labels: List[str] = []
    seen = set()
    for line in content.splitlines():
        label = line.strip()
        if not label or label in seen:
            continue
        seen.add(label)
        labels.append(label)
    return labels


def parse_application_export(
    content: str, source: SourcePlatform = SourcePlatform.MACOS
) -> List[ApplicationRecord]:
    """Parse a comma-delimited application export.

    The first row is always treated as a header. Columns are split on
    every comma (no CSV quoting rules) and quote characters are stripped
    from the name and platform. Rows with fewer than two columns or an
    empty name are dropped.

    Args:
        content: Raw text of the export file.
        source: Import slot the file was loaded into; its rank becomes
            the priority of every parsed record.

    Returns:
        Parsed records in file order.
    """
    records: List[ApplicationRecord] = []
    dropped = 0

    for index, row in enumerate(content.splitlines()):
        if index == 0:
            continue

        columns = row.split(",")
        if len(columns) < 2:
            if row.strip():
                dropped += 1
            continue

        name = columns[0].replace('"', "").strip()
        platform = columns[1].replace('"', "").strip()
        if not name:
            dropped += 1
            continue

        records.append(
            ApplicationRecord(
                name=name,
                platform=platform,
                source_row=row,
                priority=source.rank,
            )
        )

    if dropped:
        logger.debug("Dropped %d unparsable row(s) from %s export", dropped, source.value)

    return records
