"""Bounded fan-out/fan-in enrichment of summary records.

This module provides the DetailHydrator class, which fetches secondary
detail for a list of summary records on a bounded thread pool and joins
on the whole batch before returning.

A failed fetch never fails the batch: the record comes back unenriched
with the error recorded on it, so every input summary yields exactly one
HydratedRecord. Results are returned in completion order; callers that
need a stable order sort afterwards.

Example:
    >>> from fleetmatch.hydration import DetailHydrator
    >>> hydrator = DetailHydrator(max_workers=4)
    >>> records = hydrator.hydrate(policies, lambda p: client.fetch_policy_detail(p["id"]))
    >>> records.sort(key=lambda r: r.summary["name"])
"""

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from fleetmatch.models import HydratedRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Error recorded on records whose fetch never ran
CANCELLED_ERROR = "cancelled"

# Interval at which the join loop re-checks the cancellation event
_POLL_SECONDS = 0.1


class DetailHydrator:
    """Fetches detail for summary records with a concurrency cap.

    Attributes:
        max_workers: Maximum number of fetches in flight at once.
    """

    def __init__(self, max_workers: int = 8) -> None:
        """Initialize the DetailHydrator.

        Args:
            max_workers: Concurrency cap. Must be at least 1.

        Raises:
            ValueError: If max_workers is less than 1.
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers

    def hydrate(
        self,
        summaries: Sequence[T],
        fetch_detail: Callable[[T], Any],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[HydratedRecord[T]]:
        """Fetch detail for every summary and join on the batch.

        Args:
            summaries: Summary records to enrich.
            fetch_detail: Called once per summary; may raise.
            cancel_event: Optional event. Once set, fetches that have not
                started are cancelled and their records are returned
                unenriched with the error "cancelled".

        Returns:
            Exactly len(summaries) records, in completion order.
        """
        if not summaries:
            return []

        results: List[HydratedRecord[T]] = []
        workers = min(self.max_workers, len(summaries))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="hydrator") as executor:
            pending: Dict[Future, T] = {
                executor.submit(fetch_detail, summary): summary for summary in summaries
            }

            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    self._cancel_pending(pending, results)
                    if not pending:
                        break

                done, _ = wait(pending, timeout=_POLL_SECONDS, return_when=FIRST_COMPLETED)
                for future in done:
                    summary = pending.pop(future)
                    results.append(self._collect(summary, future))

        failures = sum(1 for r in results if r.error is not None)
        if failures:
            logger.warning("Hydrated %d records, %d fell back to summary", len(results), failures)
        else:
            logger.debug("Hydrated %d records", len(results))
        return results

    def _cancel_pending(
        self, pending: Dict[Future, T], results: List[HydratedRecord[T]]
    ) -> None:
        """Cancel fetches that have not started; running ones are left to finish."""
        for future in list(pending):
            if future.cancel():
                summary = pending.pop(future)
                results.append(HydratedRecord(summary=summary, error=CANCELLED_ERROR))

    def _collect(self, summary: T, future: Future) -> HydratedRecord[T]:
        try:
            detail = future.result()
        except Exception as e:
            logger.warning("Detail fetch failed for %r: %s", summary, e)
            return HydratedRecord(summary=summary, error=str(e) or type(e).__name__)
        return HydratedRecord(summary=summary, detail=detail)
