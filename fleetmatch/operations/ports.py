"""Backend capabilities the bulk pipelines depend on.

Implementations signal failure by raising; the message of the raised
exception is what ends up in the operation log.
"""

from typing import Protocol

from fleetmatch.models import RecordKind


class PolicyBackend(Protocol):
    """Creates deployment policies."""

    def create_installomator_policy(
        self,
        app_name: str,
        label: str,
        category_name: str,
        script_id: str,
        feature_on_main_page: bool,
        display_in_category: bool,
    ) -> None:
        ...


class MutationBackend(Protocol):
    """Moves and deletes existing records."""

    def move_record(self, kind: RecordKind, record_id: int, category_name: str) -> None:
        ...

    def delete_record(self, kind: RecordKind, record_id: int) -> None:
        ...
