"""
Fleet Inventory Reconciliation - CLI Interface.

A command-line interface for reconciling installed-application exports
against a label catalogue and bulk-creating deployment policies on a Jamf
server. Imported files are kept in a user-scoped directory so that every
command works from the last imported inventories.

Usage Examples:
    # Import the label catalogue and application exports
    fleetmatch import-labels labels.txt
    fleetmatch import-apps mac_apps.csv --platform mac
    fleetmatch import-apps pc_apps.csv --platform pc

    # Show matches, every label, or near misses
    fleetmatch match
    fleetmatch match --all-labels --search zoom
    fleetmatch match --suggest

    # Deploy every matched label into a category
    fleetmatch deploy --all --category Apps --url https://example.jamfcloud.com --token ...

    # List policies with their categories, then move two of them
    fleetmatch policies
    fleetmatch move 12 14 --category Utilities
"""

import logging
from functools import partial
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from fleetmatch.hydration import DetailHydrator
from fleetmatch.importing import InventoryStore
from fleetmatch.matching import ALL_PLATFORMS, InventorySession
from fleetmatch.models import (
    DeploymentConfig,
    MutationTarget,
    RecordKind,
    SourcePlatform,
    ViewMode,
)
from fleetmatch.orchestration import DeploymentOrchestrator
from fleetmatch.remote import JamfAPIError, JamfClassicClient, category_of
from fleetmatch.selection import SelectionModel
from fleetmatch.ui import ConsoleUI

__version__ = "1.0.0"

# Initialize Typer app
app = typer.Typer(
    name="fleetmatch",
    help="Fleet Inventory Reconciliation - Match installed apps to deployment labels.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for consistent output formatting
console = Console()

logger = logging.getLogger(__name__)


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(f"Fleet Inventory Reconciliation v{__version__}")
        raise typer.Exit()


def validate_throttle(value: float) -> float:
    if value < 0:
        raise typer.BadParameter("Throttle must not be negative")
    return value


def validate_workers(value: int) -> int:
    if value < 1:
        raise typer.BadParameter("Workers must be at least 1")
    return value


def configure_logging(verbose: bool) -> None:
    """Route library logging through Rich; WARNING by default, INFO when verbose."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def read_input_file(path: Path) -> str:
    """
    Read an import file as UTF-8 text.

    Raises:
        ValueError: If the file is missing, not a file, or not UTF-8 text.
    """
    if not path.exists():
        raise ValueError(f"File does not exist: {path}")
    if not path.is_file():
        raise ValueError(f"Not a file: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        raise ValueError(f"File is not UTF-8 text: {path}")


def open_session(ctx: typer.Context) -> InventorySession:
    """Create a session backed by the configured store and restore saved inputs."""
    session = InventorySession(store=InventoryStore(ctx.obj["store_dir"]))
    restored = session.restore()
    logger.info("Restored %d saved input(s)", len(restored))
    return session


def build_client(url: Optional[str], token: Optional[str]) -> JamfClassicClient:
    if not url:
        raise ValueError("Server URL is required (--url or FLEETMATCH_URL)")
    if not token:
        raise ValueError("API token is required (--token or FLEETMATCH_TOKEN)")
    return JamfClassicClient(url, token)


def fetch_targets(
    client: JamfClassicClient,
    kind: RecordKind,
    record_ids: List[int],
    workers: int,
) -> List[MutationTarget]:
    """
    Resolve record ids to named targets with their current category.

    Raises:
        ValueError: If an id is not present on the server.
    """
    by_id = {
        int(record["id"]): record
        for record in client.fetch_records(kind)
        if record.get("id") is not None
    }
    missing = [str(record_id) for record_id in record_ids if record_id not in by_id]
    if missing:
        raise ValueError(f"Unknown {kind.value} id(s): {', '.join(missing)}")

    summaries = [by_id[record_id] for record_id in record_ids]
    hydrated = DetailHydrator(max_workers=workers).hydrate(
        summaries, lambda summary: client.fetch_record_detail(kind, int(summary["id"]))
    )
    category_by_id = {int(r.summary["id"]): category_of(kind, r.detail) for r in hydrated}
    return [
        MutationTarget(
            record_id=record_id,
            name=str(by_id[record_id].get("name", record_id)),
            category=category_by_id.get(record_id),
        )
        for record_id in record_ids
    ]


# Shared remote options
URL_OPTION = typer.Option(None, "--url", envvar="FLEETMATCH_URL", help="Jamf server URL.")
TOKEN_OPTION = typer.Option(
    None, "--token", envvar="FLEETMATCH_TOKEN", help="Jamf API bearer token.", show_default=False
)
KIND_OPTION = typer.Option(RecordKind.POLICY, "--kind", "-k", help="Record type.")
WORKERS_OPTION = typer.Option(
    8, "--workers", "-w", help="Concurrent detail fetches.", callback=validate_workers
)


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    store_dir: Optional[Path] = typer.Option(
        None,
        "--store-dir",
        envvar="FLEETMATCH_STORE_DIR",
        help="Directory holding imported files.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output.",
    ),
) -> None:
    """Fleet Inventory Reconciliation - Match installed apps to deployment labels."""
    configure_logging(verbose)
    ctx.obj = {
        "store_dir": store_dir if store_dir is not None else Path(typer.get_app_dir("fleetmatch")),
        "verbose": verbose,
    }


@app.command("import-labels")
def import_labels(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Label catalogue, one label per line."),
) -> None:
    """Import the label catalogue, replacing the saved one."""
    try:
        content = read_input_file(file)
        session = InventorySession(store=InventoryStore(ctx.obj["store_dir"]))
        count = session.load_labels(content, file.name)
    except (ValueError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if count == 0:
        console.print(f"[yellow]No labels found in {file.name}.[/yellow]")
    else:
        console.print(f"[green]Imported {count:,} label(s) from {file.name}.[/green]")


@app.command("import-apps")
def import_apps(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Application export CSV (name, platform, ...)."),
    platform: SourcePlatform = typer.Option(
        ...,
        "--platform",
        "-p",
        help="Which export slot to fill.",
    ),
) -> None:
    """Import an application export into the mac or pc slot."""
    try:
        content = read_input_file(file)
        session = InventorySession(store=InventoryStore(ctx.obj["store_dir"]))
        count = session.load_applications(platform, content, file.name)
    except (ValueError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if count == 0:
        console.print(f"[yellow]No applications found in {file.name}.[/yellow]")
    else:
        console.print(
            f"[green]Imported {count:,} {platform.value} application(s) from {file.name}.[/green]"
        )


@app.command()
def status(ctx: typer.Context) -> None:
    """Show which inputs are saved and how many records each holds."""
    session = open_session(ctx)
    try:
        ui = ConsoleUI(console)
        rows = [("Labels", session.labels_source or "-", f"{len(session.labels):,}")]
        for source, title in ((SourcePlatform.MACOS, "Mac apps"), (SourcePlatform.WINDOWS, "PC apps")):
            count = len(session.applications_for(source))
            rows.append((title, session.application_sources.get(source, "-"), f"{count:,}"))
        ui.display_status(rows)
        console.print(f"[dim]Store: {ctx.obj['store_dir']}[/dim]")
        if not session.can_run_matching:
            console.print(
                "[yellow]Import a label catalogue and at least one application list to match.[/yellow]"
            )
    finally:
        session.shutdown()


@app.command()
def reset(ctx: typer.Context) -> None:
    """Forget every saved import."""
    InventoryStore(ctx.obj["store_dir"]).clear()
    console.print("[green]Saved inputs cleared.[/green]")


@app.command()
def match(
    ctx: typer.Context,
    all_labels: bool = typer.Option(
        False,
        "--all-labels",
        "-a",
        help="List every catalogue label, not just matched ones.",
    ),
    search: str = typer.Option("", "--search", "-s", help="Filter by name or label."),
    platform: str = typer.Option(
        ALL_PLATFORMS,
        "--platform",
        "-p",
        help='Platform filter: "All", a platform name, or "Installomator".',
    ),
    suggest: bool = typer.Option(
        False,
        "--suggest",
        help="Show near-miss labels for unmatched applications.",
    ),
) -> None:
    """Match imported applications against the label catalogue."""
    session = open_session(ctx)
    try:
        ui = ConsoleUI(console)
        orchestrator = DeploymentOrchestrator(session, backend=None, ui=ui)
        matches = orchestrator.analyse()
        if not session.can_run_matching:
            raise typer.Exit(1)

        if all_labels or search or platform != ALL_PLATFORMS:
            mode = ViewMode.ALL_LABELS if all_labels else ViewMode.MATCHED_ONLY
            items = session.filter_items(session.display_items(mode), search, platform)
            ui.display_items(session.group_items(items))

        if suggest:
            ui.display_suggestions(session.suggestions())

        logger.info("Displayed %d match(es)", len(matches))
    except KeyboardInterrupt:
        console.print("\n[yellow]Matching interrupted by user.[/yellow]")
        raise typer.Exit(130)
    finally:
        session.shutdown()


@app.command()
def deploy(
    ctx: typer.Context,
    labels: Optional[List[str]] = typer.Option(
        None,
        "--label",
        "-l",
        help="Label to deploy. Repeat for several.",
    ),
    deploy_all: bool = typer.Option(
        False,
        "--all",
        help="Deploy every matched label.",
    ),
    all_labels: bool = typer.Option(
        False,
        "--all-labels",
        "-a",
        help="Allow labels no application matched.",
    ),
    category: str = typer.Option(..., "--category", "-c", help="Policy category name."),
    script_id: Optional[str] = typer.Option(
        None,
        "--script-id",
        help="Installer script id. Looked up by name when omitted.",
    ),
    featured: bool = typer.Option(False, "--featured", help="Feature on the Self Service main page."),
    display_in_category: bool = typer.Option(
        True,
        "--display-in-category/--hide-in-category",
        help="Show the policy in its Self Service category.",
    ),
    throttle: float = typer.Option(
        0.5,
        "--throttle",
        help="Seconds to wait after each policy creation.",
        callback=validate_throttle,
    ),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Directory for the run log."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
    url: Optional[str] = URL_OPTION,
    token: Optional[str] = TOKEN_OPTION,
) -> None:
    """Create one install policy per selected label."""
    if not labels and not deploy_all:
        console.print("[red]Error:[/red] Select labels with --label or use --all.")
        raise typer.Exit(1)

    session = open_session(ctx)
    try:
        client = build_client(url, token)
        mode = ViewMode.ALL_LABELS if all_labels else ViewMode.MATCHED_ONLY
        orchestrator = DeploymentOrchestrator(
            session,
            client,
            ui=ConsoleUI(console),
            selection=SelectionModel(mode),
            log_dir=log_dir,
            server_url=client.base_url,
            throttle_seconds=throttle,
        )
        orchestrator.analyse()
        if not session.can_run_matching:
            raise typer.Exit(1)

        items = session.display_items(mode)
        if deploy_all:
            wanted = [item.id for item in items if item.is_matched]
        else:
            known = {item.id for item in items}
            unknown = [label for label in labels if label not in known]
            if unknown:
                raise ValueError(f"Not available in this view: {', '.join(unknown)}")
            wanted = list(dict.fromkeys(labels))
        for item_id in wanted:
            orchestrator.selection.toggle(item_id)

        selected = orchestrator.selected_items()
        if not selected:
            console.print("[yellow]Nothing selected to deploy.[/yellow]")
            return

        if script_id is None:
            script_id = client.find_script_id()
            if script_id is None:
                raise ValueError("No installer script found; pass --script-id")
        config = DeploymentConfig(
            category_name=category,
            script_id=script_id,
            feature_on_main_page=featured,
            display_in_category=display_in_category,
        )

        if not yes and not orchestrator.ui.confirm(
            f"Create {len(selected)} policy(ies) in category '{category}'?"
        ):
            console.print("[yellow]Deployment cancelled.[/yellow]")
            return

        summary = orchestrator.deploy(config)
        if not summary.all_succeeded:
            raise typer.Exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Deployment interrupted by user.[/yellow]")
        raise typer.Exit(130)

    except (ValueError, OSError, JamfAPIError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    finally:
        session.shutdown()


@app.command()
def policies(
    kind: RecordKind = KIND_OPTION,
    workers: int = WORKERS_OPTION,
    url: Optional[str] = URL_OPTION,
    token: Optional[str] = TOKEN_OPTION,
) -> None:
    """List policies or profiles with their current category."""
    try:
        client = build_client(url, token)
        summaries = client.fetch_records(kind)
        records = DetailHydrator(max_workers=workers).hydrate(
            summaries, lambda summary: client.fetch_record_detail(kind, int(summary["id"]))
        )
        records.sort(key=lambda record: str(record.summary.get("name", "")).casefold())
        title = "Policies" if kind is RecordKind.POLICY else "Configuration Profiles"
        ConsoleUI(console).display_records(title, records, partial(category_of, kind))

    except KeyboardInterrupt:
        console.print("\n[yellow]Listing interrupted by user.[/yellow]")
        raise typer.Exit(130)

    except (ValueError, JamfAPIError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def move(
    record_ids: List[int] = typer.Argument(..., help="Record ids to move."),
    category: str = typer.Option(..., "--category", "-c", help="Destination category name."),
    kind: RecordKind = KIND_OPTION,
    workers: int = WORKERS_OPTION,
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Directory for the run log."),
    url: Optional[str] = URL_OPTION,
    token: Optional[str] = TOKEN_OPTION,
) -> None:
    """Move policies or profiles to another category."""
    try:
        client = build_client(url, token)
        targets = fetch_targets(client, kind, list(dict.fromkeys(record_ids)), workers)
        orchestrator = DeploymentOrchestrator(
            InventorySession(),
            client,
            ui=ConsoleUI(console),
            log_dir=log_dir,
            server_url=client.base_url,
        )
        summary = orchestrator.move(kind, targets, category)
        if not summary.all_succeeded:
            raise typer.Exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Move interrupted by user.[/yellow]")
        raise typer.Exit(130)

    except (ValueError, OSError, JamfAPIError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def delete(
    record_ids: List[int] = typer.Argument(..., help="Record ids to delete."),
    kind: RecordKind = KIND_OPTION,
    workers: int = WORKERS_OPTION,
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Directory for the run log."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
    url: Optional[str] = URL_OPTION,
    token: Optional[str] = TOKEN_OPTION,
) -> None:
    """Delete policies or profiles."""
    try:
        client = build_client(url, token)
        targets = fetch_targets(client, kind, list(dict.fromkeys(record_ids)), workers)
        ui = ConsoleUI(console)
        if not yes and not ui.confirm(f"Delete {len(targets)} {kind.value}(s)? This cannot be undone"):
            console.print("[yellow]Delete cancelled.[/yellow]")
            return

        orchestrator = DeploymentOrchestrator(
            InventorySession(), client, ui=ui, log_dir=log_dir, server_url=client.base_url
        )
        summary = orchestrator.delete(kind, targets)
        if not summary.all_succeeded:
            raise typer.Exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Delete interrupted by user.[/yellow]")
        raise typer.Exit(130)

    except (ValueError, OSError, JamfAPIError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
