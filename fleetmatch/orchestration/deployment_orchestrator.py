"""DeploymentOrchestrator for coordinating matching and bulk runs.

This module provides the DeploymentOrchestrator class that ties together the
InventorySession, SelectionModel, the bulk pipelines, ConsoleUI and
RunLogger to implement the analyse, deploy, move and delete workflows.

Example:
    from fleetmatch.orchestration import DeploymentOrchestrator

    orchestrator = DeploymentOrchestrator(session, client, log_dir=Path.cwd())
    orchestrator.analyse()
    orchestrator.selection.toggle("zoom")
    summary = orchestrator.deploy(DeploymentConfig("Apps", "12"))
"""

import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from fleetmatch.matching import InventorySession
from fleetmatch.models import (
    BulkRunSummary,
    DeploymentConfig,
    DisplayItem,
    MatchResult,
    MutationTarget,
    OperationKind,
    RecordKind,
)
from fleetmatch.operations import (
    DEPLOY_THROTTLE_SECONDS,
    BulkDeploymentPipeline,
    BulkMutationPipeline,
)
from fleetmatch.orchestration.run_logger import RunLogger
from fleetmatch.selection import SelectionModel
from fleetmatch.ui import ConsoleUI


class DeploymentOrchestrator:
    """Orchestrates the reconciliation and bulk run workflows.

    The orchestrator exposes four primary methods:
    - analyse(): Run matching and display the results
    - deploy(): Create one policy per selected item
    - move(): Move existing records to another category
    - delete(): Delete existing records

    Every bulk run shows progress, then a summary, and writes a run log
    when log_dir is set. A deployment clears the selection only when no
    item failed, so failed items can be retried as-is.

    Attributes:
        session: Inventory session providing matches and display items.
        backend: Object implementing PolicyBackend and MutationBackend.
        selection: Selection model the deploy workflow reads from.
        log_dir: Directory for run logs, or None to skip logging.
        server_url: Backend URL recorded in run log headers.
    """

    def __init__(
        self,
        session: InventorySession,
        backend,
        ui: Optional[ConsoleUI] = None,
        selection: Optional[SelectionModel] = None,
        log_dir: Optional[Path] = None,
        server_url: Optional[str] = None,
        throttle_seconds: float = DEPLOY_THROTTLE_SECONDS,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        """Initialize the DeploymentOrchestrator.

        Args:
            session: Inventory session with loaded inputs.
            backend: Remote backend, usually a JamfClassicClient.
            ui: Optional ConsoleUI. Defaults to a new instance.
            selection: Optional SelectionModel. Defaults to matched-only mode.
            log_dir: Optional directory for run logs.
            server_url: Optional backend URL for run log headers.
            throttle_seconds: Delay after each policy creation.
            sleep: Optional sleep function used by the pipelines.

        Raises:
            ValueError: If throttle_seconds is negative.
        """
        if throttle_seconds < 0:
            raise ValueError(f"throttle_seconds must not be negative, got {throttle_seconds}")

        self.session = session
        self.backend = backend
        self.selection = selection if selection is not None else SelectionModel()
        self.log_dir = log_dir
        self.server_url = server_url
        self.throttle_seconds = throttle_seconds
        self._ui = ui or ConsoleUI()
        self._sleep = sleep

    @property
    def ui(self) -> ConsoleUI:
        return self._ui

    def analyse(self) -> List[MatchResult]:
        """Run matching, wait for the published set and display it.

        Returns:
            The published match list. Empty when inputs are missing.
        """
        if not self.session.can_run_matching:
            self._ui.console.print(
                "[yellow]Import a label catalogue and at least one application list first.[/yellow]"
            )
            return []

        matches = self.session.run_matching().result()
        self.selection.prune(item.id for item in self.session.display_items(self.selection.mode))
        self._ui.display_match_summary(
            matches,
            label_count=len(self.session.labels),
            application_count=len(self.session.applications),
        )
        return matches

    def selected_items(self) -> List[DisplayItem]:
        """Display items of the current mode whose id is selected."""
        return [
            item
            for item in self.session.display_items(self.selection.mode)
            if item.id in self.selection
        ]

    def deploy(
        self,
        config: DeploymentConfig,
        cancel_event: Optional[threading.Event] = None,
    ) -> BulkRunSummary:
        """Create a policy for every selected item.

        Returns:
            BulkRunSummary with one result per selected item.
        """
        items = self.selected_items()
        pipeline = BulkDeploymentPipeline(
            self.backend, throttle_seconds=self.throttle_seconds, **self._sleep_kwargs()
        )

        progress, callback = self._ui.create_progress_callback("Deploying", len(items))
        pipeline.progress_callback = callback
        with progress:
            summary = pipeline.deploy(items, config, cancel_event)

        if summary.failure_count == 0:
            self.selection.clear()

        self._finish_run(summary, {
            "Category": config.category_name,
            "Script ID": str(config.script_id),
            "Featured on main page": "yes" if config.feature_on_main_page else "no",
            "Display in category": "yes" if config.display_in_category else "no",
        })
        return summary

    def move(
        self,
        kind: RecordKind,
        targets: Sequence[MutationTarget],
        category_name: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> BulkRunSummary:
        """Move records of one kind into a category."""
        pipeline = BulkMutationPipeline(self.backend, **self._sleep_kwargs())
        progress, callback = self._ui.create_progress_callback("Moving", len(targets))
        pipeline.progress_callback = callback
        with progress:
            summary = pipeline.move(kind, targets, category_name, cancel_event)

        self._finish_run(summary, {"Record type": kind.value, "Destination category": category_name})
        return summary

    def delete(
        self,
        kind: RecordKind,
        targets: Sequence[MutationTarget],
        cancel_event: Optional[threading.Event] = None,
    ) -> BulkRunSummary:
        """Delete records of one kind."""
        pipeline = BulkMutationPipeline(self.backend, **self._sleep_kwargs())
        progress, callback = self._ui.create_progress_callback("Deleting", len(targets))
        pipeline.progress_callback = callback
        with progress:
            summary = pipeline.delete(kind, targets, cancel_event)

        self._finish_run(summary, {"Record type": kind.value})
        return summary

    def _sleep_kwargs(self) -> dict:
        return {"sleep": self._sleep} if self._sleep is not None else {}

    def _finish_run(self, summary: BulkRunSummary, parameters: dict) -> None:
        self._ui.display_run_summary(summary)
        if self.log_dir is None:
            return

        try:
            run_logger = RunLogger(
                log_file_path=self._log_path(summary.operation),
                server_url=self.server_url,
            )
        except OSError as e:
            print(f"Warning: Could not create log file: {e}", file=sys.stderr)
            return

        try:
            with run_logger:
                run_logger.log_header(summary.operation)
                run_logger.log_parameters(parameters)
                run_logger.log_results(summary)
                run_logger.log_summary(summary)
        except OSError as e:
            print(f"Warning: Could not write log file: {e}", file=sys.stderr)
            return
        self._ui.console.print(f"[dim]Log file: {run_logger.get_log_path()}[/dim]")

    def _log_path(self, operation: OperationKind) -> Path:
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        return Path(self.log_dir) / f"fleetmatch_{operation.value}_{timestamp}.log"
