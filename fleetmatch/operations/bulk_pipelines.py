"""
Bulk pipelines for the deployment engine.

This module contains the sequential pipelines that run one remote call per
item and aggregate per-item outcomes:
- BulkDeploymentPipeline: creates one policy per selected item, throttled
- BulkMutationPipeline: moves or deletes existing records

Every run is strictly sequential and never aborts on a failed item. A run
over N items always yields N OperationResult entries in submission order.
"""

import logging
import threading
import time
from typing import Callable, Optional, Sequence, TypeVar

from fleetmatch.models import (
    BulkRunSummary,
    DeploymentConfig,
    DisplayItem,
    MutationTarget,
    OperationKind,
    OperationResult,
    RecordKind,
)

from .ports import MutationBackend, PolicyBackend

# Configure module logger
logger = logging.getLogger(__name__)

# Delay after each create call, protecting the backend
DEPLOY_THROTTLE_SECONDS = 0.5

# Error recorded for items skipped after cancellation
CANCELLED_ERROR = "Cancelled before execution"

ProgressCallback = Callable[[int, int, str], None]

T = TypeVar("T")


class _BulkPipeline:
    """Shared sequential loop with throttling, progress and cancellation."""

    def __init__(
        self,
        throttle_seconds: float = 0.0,
        progress_callback: Optional[ProgressCallback] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Parameters:
            throttle_seconds (float): Fixed delay after every call, regardless of outcome.
            progress_callback (Callable[[int, int, str], None] | None): Called before each
                item with (index, total, item_name).
            sleep (Callable[[float], None]): Sleep function used for the throttle.

        Raises:
            ValueError: If throttle_seconds is negative.
        """
        if throttle_seconds < 0:
            raise ValueError(f"throttle_seconds must not be negative, got {throttle_seconds}")
        self.throttle_seconds = throttle_seconds
        self.progress_callback = progress_callback
        self._sleep = sleep

    def _run(
        self,
        operation: OperationKind,
        items: Sequence[T],
        name_of: Callable[[T], str],
        execute: Callable[[T], OperationResult],
        fail: Callable[[T, str], OperationResult],
        cancel_event: Optional[threading.Event] = None,
    ) -> BulkRunSummary:
        summary = BulkRunSummary(operation=operation)
        start = time.monotonic()
        total = len(items)
        logger.info("Starting %s run over %d item(s)", operation.value, total)

        for index, item in enumerate(items):
            name = name_of(item)

            if cancel_event is not None and cancel_event.is_set():
                summary.cancelled = True
                summary.results.append(fail(item, CANCELLED_ERROR))
                continue

            if self.progress_callback is not None:
                try:
                    self.progress_callback(index, total, name)
                except Exception as e:
                    logger.warning("Progress callback failed for %s: %s", name, e)

            try:
                result = execute(item)
            except Exception as e:
                error_msg = str(e) or type(e).__name__
                logger.warning("%s failed for %s: %s", operation.value.capitalize(), name, error_msg)
                result = fail(item, error_msg)
            else:
                logger.debug("%s succeeded for %s", operation.value.capitalize(), name)
            summary.results.append(result)

            if self.throttle_seconds > 0:
                self._sleep(self.throttle_seconds)

        summary.duration_seconds = time.monotonic() - start
        logger.info(
            "Finished %s run: %d succeeded, %d failed%s",
            operation.value,
            summary.success_count,
            summary.failure_count,
            " (cancelled)" if summary.cancelled else "",
        )
        return summary


class BulkDeploymentPipeline(_BulkPipeline):
    """Creates one deployment policy per selected item.

    Matched and unmatched items are deployed alike: every item carries a
    usable label. Re-running the same selection creates duplicate policies;
    there is no idempotency key.

    Example:
        >>> pipeline = BulkDeploymentPipeline(client)
        >>> summary = pipeline.deploy(items, DeploymentConfig("Apps", "12"))
        >>> print(f"{summary.success_count} created, {summary.failure_count} failed")
    """

    def __init__(
        self,
        backend: PolicyBackend,
        throttle_seconds: float = DEPLOY_THROTTLE_SECONDS,
        progress_callback: Optional[ProgressCallback] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(throttle_seconds, progress_callback, sleep)
        self.backend = backend

    def deploy(
        self,
        items: Sequence[DisplayItem],
        config: DeploymentConfig,
        cancel_event: Optional[threading.Event] = None,
    ) -> BulkRunSummary:
        """Create a policy for each item, one call at a time.

        Parameters:
            items (Sequence[DisplayItem]): Items to deploy, in submission order.
            config (DeploymentConfig): Category, script and self-service flags.
            cancel_event (threading.Event | None): When set, remaining items are
                recorded as cancelled failures.

        Returns:
            BulkRunSummary: One result per item, in order.
        """

        def execute(item: DisplayItem) -> OperationResult:
            self.backend.create_installomator_policy(
                app_name=item.display_name,
                label=item.label,
                category_name=config.category_name,
                script_id=config.script_id,
                feature_on_main_page=config.feature_on_main_page,
                display_in_category=config.display_in_category,
            )
            return OperationResult(item_name=item.display_name, success=True)

        def fail(item: DisplayItem, error: str) -> OperationResult:
            return OperationResult(item_name=item.display_name, success=False, error=error)

        return self._run(
            OperationKind.DEPLOY,
            list(items),
            lambda item: item.display_name,
            execute,
            fail,
            cancel_event,
        )


class BulkMutationPipeline(_BulkPipeline):
    """Moves or deletes records of one kind.

    Unthrottled by default; pass throttle_seconds to space calls out.
    """

    def __init__(
        self,
        backend: MutationBackend,
        throttle_seconds: float = 0.0,
        progress_callback: Optional[ProgressCallback] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(throttle_seconds, progress_callback, sleep)
        self.backend = backend

    def move(
        self,
        kind: RecordKind,
        targets: Sequence[MutationTarget],
        to_category: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> BulkRunSummary:
        """Move every target into a category, recording from/to for audit."""
        if not to_category.strip():
            raise ValueError("to_category must not be empty")

        def execute(target: MutationTarget) -> OperationResult:
            self.backend.move_record(kind, target.record_id, to_category)
            return self._moved(target, to_category, success=True)

        def fail(target: MutationTarget, error: str) -> OperationResult:
            return self._moved(target, to_category, success=False, error=error)

        return self._run(
            OperationKind.MOVE,
            list(targets),
            lambda target: target.name,
            execute,
            fail,
            cancel_event,
        )

    def delete(
        self,
        kind: RecordKind,
        targets: Sequence[MutationTarget],
        cancel_event: Optional[threading.Event] = None,
    ) -> BulkRunSummary:
        """Delete every target."""

        def execute(target: MutationTarget) -> OperationResult:
            self.backend.delete_record(kind, target.record_id)
            return OperationResult(item_name=target.name, success=True, record_id=target.record_id)

        def fail(target: MutationTarget, error: str) -> OperationResult:
            return OperationResult(
                item_name=target.name, success=False, error=error, record_id=target.record_id
            )

        return self._run(
            OperationKind.DELETE,
            list(targets),
            lambda target: target.name,
            execute,
            fail,
            cancel_event,
        )

    @staticmethod
    def _moved(
        target: MutationTarget,
        to_category: str,
        success: bool,
        error: Optional[str] = None,
    ) -> OperationResult:
        return OperationResult(
            item_name=target.name,
            success=success,
            error=error,
            from_category=target.category,
            to_category=to_category,
            record_id=target.record_id,
        )
