"""RunLogger for writing bulk run reports in a plain-text format.

This module provides the RunLogger class that records each deploy, move or
delete run as a structured report: header, parameters, one line per item
in submission order, and a summary.
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, TextIO

from fleetmatch.models import BulkRunSummary, OperationKind


class RunLogger:
    """Logger for bulk runs with a sectioned report format.

    Usage:
        with RunLogger(server_url="https://example.jamfcloud.com") as run_log:
            run_log.log_header(OperationKind.DEPLOY)
            run_log.log_parameters({"Category": "Apps", "Script": "12"})
            run_log.log_results(summary)
            run_log.log_summary(summary)

    Attributes:
        SEPARATOR: The 65-character separator line used between sections.
    """

    SEPARATOR = "=" * 65

    def __init__(
        self,
        log_file_path: Optional[Path] = None,
        server_url: Optional[str] = None,
    ) -> None:
        """Initialize the RunLogger.

        Args:
            log_file_path: Optional path for the log file. If not provided,
                generates a timestamped filename in the current directory.
            server_url: Backend the run targets, shown in the header.

        Raises:
            OSError: If the parent directory of the log file does not exist.
        """
        self._server_url = server_url
        self._start_timestamp = datetime.now()
        self._file_handle: Optional[TextIO] = None

        if log_file_path is None:
            timestamp_str = self._start_timestamp.strftime("%Y-%m-%d_%H-%M-%S")
            self._log_file_path = Path.cwd() / f"fleetmatch_run_{timestamp_str}.log"
        else:
            self._log_file_path = Path(log_file_path)

        parent = self._log_file_path.parent
        if not parent.is_dir():
            raise OSError(f"Log directory does not exist: {parent}")

    def __enter__(self) -> "RunLogger":
        try:
            self._file_handle = open(self._log_file_path, "w", encoding="utf-8")
        except OSError as e:
            raise OSError(f"Cannot open log file for writing: {e}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._file_handle is not None:
            try:
                self._file_handle.close()
            except OSError as e:
                print(f"Warning: Error closing log file: {e}", file=sys.stderr)
            finally:
                self._file_handle = None

    def get_log_path(self) -> Path:
        return self._log_file_path

    def log_header(self, operation: OperationKind) -> None:
        """Write the title, timestamp, operation and target server."""
        self._write_separator()
        self._write_line("Fleet Inventory Reconciliation - Run Log")
        self._write_separator()
        self._write_line(f"Timestamp: {self._format_timestamp(self._start_timestamp)}")
        self._write_line(f"Operation: {operation.value.upper()}")
        if self._server_url:
            self._write_line(f"Server: {self._server_url}")
        self._write_line("")

    def log_parameters(self, parameters: Dict[str, str]) -> None:
        """Write the run parameters section.

        Args:
            parameters: Ordered name/value pairs.
        """
        self._write_separator()
        self._write_line("PARAMETERS")
        self._write_separator()
        for name, value in parameters.items():
            self._write_line(f"{name}: {value}")
        self._write_line("")

    def log_results(self, summary: BulkRunSummary) -> None:
        """Write one line per item, in submission order.

        Moves also record the source and destination category.
        """
        self._write_separator()
        self._write_line("RESULTS")
        self._write_separator()
        for index, result in enumerate(summary.results, start=1):
            status = "OK" if result.success else "FAILED"
            line = f"{index}. [{status}] {result.item_name}"
            if result.record_id is not None:
                line += f" (id {result.record_id})"
            self._write_line(line)
            if summary.operation is OperationKind.MOVE:
                from_category = result.from_category or "No category"
                self._write_line(f"{from_category} -> {result.to_category}", indent=4)
            if result.error:
                self._write_line(f"! {result.error}", indent=4)
        self._write_line("")

    def log_summary(self, summary: BulkRunSummary) -> None:
        """Write the summary section to the log file."""
        self._write_separator()
        self._write_line("SUMMARY")
        self._write_separator()
        self._write_line(f"Items processed: {len(summary.results)}")
        self._write_line(f"Succeeded: {summary.success_count}")
        self._write_line(f"Failed: {summary.failure_count}")
        if summary.cancelled:
            self._write_line("Run was cancelled before completion")
        self._write_line(f"Duration: {self._format_duration(summary.duration_seconds)}")
        self._write_line("")
        self._write_line(f"Log file: {self._log_file_path}")
        self._write_separator()

    def _format_duration(self, seconds: float) -> str:
        """Format duration as "45s", "5m 23s" or "1h 5m 30s"."""
        total_seconds = int(seconds)

        if total_seconds < 60:
            return f"{total_seconds}s"

        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        secs = total_seconds % 60

        if hours > 0:
            return f"{hours}h {minutes}m {secs}s"
        return f"{minutes}m {secs}s"

    def _format_timestamp(self, dt: datetime) -> str:
        return dt.strftime("%Y-%m-%d %H:%M:%S")

    def _write_separator(self) -> None:
        self._write_line(self.SEPARATOR)

    def _write_line(self, text: str, indent: int = 0) -> None:
        if self._file_handle is None:
            print(
                f"Warning: Attempted to write to closed log file: {text}",
                file=sys.stderr,
            )
            return

        try:
            self._file_handle.write(" " * indent + text + "\n")
        except OSError as e:
            print(f"Warning: Error writing to log file: {e}", file=sys.stderr)
