"""Pytest fixtures for fleetmatch tests."""

import io
import tempfile
from pathlib import Path
from typing import Dict, Generator, List
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from fleetmatch.importing import InventoryStore
from fleetmatch.matching import InventorySession
from fleetmatch.models import ApplicationRecord, MatchResult, SourcePlatform
from fleetmatch.ui import ConsoleUI


def pytest_configure(config) -> None:
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests spanning several components")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for isolated test environments.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def label_catalogue() -> str:
    """A small label catalogue with blank lines and surrounding whitespace."""
    return "zoom\nzoomclient\n\n  googlechrome  \nslack\nmicrosoftteams\nfirefox\n"


@pytest.fixture
def mac_export() -> str:
    """A macOS application export with a header row."""
    return (
        "Application Title,Platform,Count\n"
        "Zoom,Mac,120\n"
        '"Google Chrome","Mac",98\n'
        "Slack,Mac,64\n"
        "Xcode,Mac,3\n"
    )


@pytest.fixture
def pc_export() -> str:
    """A Windows application export that overlaps the macOS one."""
    return (
        "Application Title,Platform,Count\n"
        "Zoom,PC,80\n"
        "Microsoft Teams,PC,77\n"
        "Firefox,PC,12\n"
    )


@pytest.fixture
def store(temp_dir: Path) -> InventoryStore:
    return InventoryStore(temp_dir / "store")


@pytest.fixture
def loaded_session(
    store: InventoryStore, label_catalogue: str, mac_export: str, pc_export: str
) -> Generator[InventorySession, None, None]:
    """A session with labels and both exports loaded, matching already run."""
    session = InventorySession(store=store)
    session.load_labels(label_catalogue, "labels.txt")
    session.load_applications(SourcePlatform.MACOS, mac_export, "mac.csv")
    session.load_applications(SourcePlatform.WINDOWS, pc_export, "pc.csv")
    session.run_matching().result(timeout=5)
    yield session
    session.shutdown()


@pytest.fixture
def ui_with_output() -> tuple:
    """Create a ConsoleUI with captured output.

    Returns:
        Tuple of (ConsoleUI instance, StringIO for reading output).
    """
    output = io.StringIO()
    console = Console(file=output, force_terminal=True, width=120)
    return ConsoleUI(console=console), output


@pytest.fixture
def mock_backend() -> MagicMock:
    """A backend double recording every remote call."""
    return MagicMock(name="backend")


@pytest.fixture
def make_app():
    """Factory building ApplicationRecords as the export parser would."""

    def factory(name: str, platform: str = "Mac", priority: int = 0) -> ApplicationRecord:
        return ApplicationRecord(
            name=name, platform=platform, source_row=f"{name},{platform}", priority=priority
        )

    return factory


@pytest.fixture
def make_match(make_app):
    def factory(name: str, label: str, platform: str = "Mac") -> MatchResult:
        return MatchResult(application=make_app(name, platform), matched_label=label)

    return factory


@pytest.fixture
def sample_policies() -> List[Dict]:
    """Policy summaries as listed by the Classic API."""
    return [
        {"id": 1, "name": "Install Zoom"},
        {"id": 2, "name": "Install Slack"},
        {"id": 3, "name": "Install Firefox"},
    ]
