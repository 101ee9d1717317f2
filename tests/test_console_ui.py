"""Tests for the ConsoleUI class."""

import pytest

from fleetmatch.models import (
    BulkRunSummary,
    DisplayItem,
    HydratedRecord,
    OperationKind,
    OperationResult,
    RecordKind,
)
from fleetmatch.remote import category_of
from fleetmatch.ui import ConsoleUI


class TestConsoleUIDisplay:
    """Tests for display methods with captured console output."""

    def test_match_summary(self, ui_with_output, make_match):
        ui, output = ui_with_output
        matches = [make_match("Zoom", "zoom"), make_match("Firefox", "firefox", "PC")]

        ui.display_match_summary(matches, label_count=900, application_count=140)

        result = output.getvalue()
        assert "Match Results" in result
        assert "Labels in catalogue: 900" in result
        assert "Matches found: 2" in result
        assert "Zoom" in result
        assert "firefox" in result

    def test_match_summary_empty(self, ui_with_output):
        ui, output = ui_with_output
        ui.display_match_summary([], label_count=10, application_count=0)
        assert "No applications matched" in output.getvalue()

    def test_grouped_items_mark_selection(self, ui_with_output, make_app):
        ui, output = ui_with_output
        groups = [
            ("Installomator", [DisplayItem("zoomclient")]),
            ("Mac", [DisplayItem("zoom", make_app("Zoom"))]),
        ]

        ui.display_items(groups, selected_ids={"zoom"})

        result = output.getvalue()
        assert "Installomator (1)" in result
        assert "Mac (1)" in result
        assert "zoomclient" in result
        assert "*" in result

    def test_suggestions(self, ui_with_output, make_app):
        ui, output = ui_with_output
        ui.display_suggestions([(make_app("Firefx"), "firefox", 92.3)])
        result = output.getvalue()
        assert "Firefx" in result
        assert "92" in result

    def test_records_with_fallback(self, ui_with_output):
        ui, output = ui_with_output
        records = [
            HydratedRecord(
                summary={"id": 1, "name": "Install Zoom"},
                detail={"policy": {"general": {"category": {"name": "Apps"}}}},
            ),
            HydratedRecord(summary={"id": 2, "name": "Install Slack"}, error="timed out"),
        ]

        ui.display_records("Policies", records, lambda d: category_of(RecordKind.POLICY, d))

        result = output.getvalue()
        assert "Policies (2)" in result
        assert "Apps" in result
        assert "Details unavailable for 1 record(s)" in result

    def test_run_summary_with_failures(self, ui_with_output):
        ui, output = ui_with_output
        summary = BulkRunSummary(
            operation=OperationKind.DEPLOY,
            results=[
                OperationResult(item_name="Zoom", success=True),
                OperationResult(item_name="Slack", success=False, error="HTTP 409"),
            ],
            duration_seconds=323,
        )

        ui.display_run_summary(summary)

        result = output.getvalue()
        assert "Deployment Summary" in result
        assert "5m 23s" in result
        assert "Errors (1)" in result
        assert "Slack: HTTP 409" in result

    def test_move_summary_lists_category_changes(self, ui_with_output):
        ui, output = ui_with_output
        summary = BulkRunSummary(
            operation=OperationKind.MOVE,
            results=[
                OperationResult(item_name="A", success=True, from_category="Old", to_category="New"),
                OperationResult(item_name="B", success=True, from_category="Old", to_category="New"),
            ],
        )

        ui.display_run_summary(summary)

        assert "Old -> New: 2" in output.getvalue()

    def test_errors_truncated_after_ten(self, ui_with_output):
        ui, output = ui_with_output
        ui._display_errors([f"error {i}" for i in range(15)])
        assert "... and 5 more errors" in output.getvalue()


class TestConsoleUIProgress:
    """Tests for the pipeline progress callback."""

    def test_callback_updates_completed_count(self):
        ui = ConsoleUI()
        progress, callback = ui.create_progress_callback("Deploying", 3)

        callback(1, 3, "Slack")

        task = progress.tasks[0]
        assert task.completed == 2
        assert "Slack" in task.description

    @pytest.mark.parametrize("name,expected", [
        ("short", "short"),
        ("x" * 70, "x" * 57 + "..."),
    ])
    def test_truncate_name(self, name, expected):
        assert ConsoleUI()._truncate_name(name) == expected
