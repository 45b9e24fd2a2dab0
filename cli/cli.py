"""CLI for design-sync.

Developer CLI to run drift detection, coverage, sync and undo locally
against the configured database.
"""

import asyncio
import json
from pathlib import Path

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from design_sync.config.settings import settings
from design_sync.core.logger import setup_logger
from design_sync.coverage.calc import ComponentCoverageInput, compute_coverage
from design_sync.coverage.service import CoverageService
from design_sync.db.models import as_utc
from design_sync.db.session import check_connection, get_session, init_db
from design_sync.drift.detect import DriftDetectionOptions, DriftSource, detect_drift
from design_sync.jobs.prune_job import run_prune_job
from design_sync.sync import repository
from design_sync.sync.errors import DuplicateOperationError, SyncPersistenceError
from design_sync.sync.orchestrator import SyncOrchestrator
from design_sync.sync.snapshots import StaticSnapshotProvider
from design_sync.sync.types import ExecuteSyncInput, UndoRequest
from design_sync.undo.undo_manager import UndoManager

# Initialize Rich console for output
console = Console()

# Initialize Typer app
app = typer.Typer(
    name="design-sync",
    help="Design-sync CLI - drift, coverage, sync and undo",
    add_completion=False,
)


@app.callback()
def main(debug: bool = typer.Option(False, "--debug", help="Enable debug logging")) -> None:
    setup_logger(level="DEBUG" if debug else settings.log_level)


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Error:[/red] Could not read {path}: {e}", style="bold red")
        raise typer.Exit(1) from e


def _print_model(title: str, payload: str, border_style: str = "green") -> None:
    console.print(Panel(JSON(payload), title=title, border_style=border_style))


@app.command("init-db")
def init_db_command() -> None:
    """Create the design-sync tables if they do not exist."""
    init_db()
    console.print("[green]✓ Design-sync schema ready[/green]")


@app.command()
def check_db() -> None:
    """Verify the configured database is reachable."""
    try:
        check_connection()
    except Exception as e:
        console.print(Panel(Text("Database connection failed", style="bold red"), subtitle=str(e), border_style="red"))
        raise typer.Exit(1) from e
    console.print(Panel(Text("Database connection OK", style="bold green"), border_style="green"))


@app.command()
def drift(
    sources_file: Path = typer.Argument(..., help="JSON list of {component_id, code, design}"),
    threshold: int = typer.Option(settings.drift_severity_threshold, "--threshold", "-t", help="Severity threshold"),
    ignore: list[str] = typer.Option([], "--ignore", help="Extra keys to ignore"),
) -> None:
    """Detect drift between code and design snapshots."""
    raw = _load_json(sources_file)
    try:
        sources = [DriftSource.model_validate(item) for item in raw]  # type: ignore[union-attr]
        options = DriftDetectionOptions(ignore_keys=ignore, max_modified_threshold=threshold)
    except (ValidationError, TypeError) as e:
        console.print(f"[red]Invalid drift input:[/red] {e}", style="bold red")
        raise typer.Exit(1) from e

    result = detect_drift(sources, options)
    _print_model(f"Drift ({result.total} item(s))", result.model_dump_json())


@app.command()
def coverage(
    input_file: Path = typer.Argument(..., help="JSON component coverage input"),
    store: bool = typer.Option(False, "--store", help="Store the result in the coverage cache"),
) -> None:
    """Compute variant and test coverage for one component."""
    raw = _load_json(input_file)
    try:
        data = ComponentCoverageInput.model_validate(raw)
    except ValidationError as e:
        console.print(f"[red]Invalid coverage input:[/red] {e}", style="bold red")
        raise typer.Exit(1) from e

    result = asyncio.run(CoverageService().compute_and_store(data)) if store else compute_coverage(data)
    _print_model(f"Coverage {result.component_id}: {result.variant_coverage_pct}%", result.model_dump_json())


@app.command()
def sync(
    input_file: Path = typer.Argument(..., help="JSON sync request {components, initiated_by}"),
    snapshots_file: Path | None = typer.Option(
        None,
        "--snapshots",
        help="JSON {component_id: {code, design}}; synthetic snapshots when omitted",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without persisting"),
) -> None:
    """Execute a sync batch and create its undo entry."""
    raw = _load_json(input_file)
    try:
        request = ExecuteSyncInput.model_validate(raw)
    except ValidationError as e:
        console.print(f"[red]Invalid sync request:[/red] {e}", style="bold red")
        raise typer.Exit(1) from e
    if dry_run:
        request = request.model_copy(update={"dry_run": True})

    provider = StaticSnapshotProvider(_load_json(snapshots_file)) if snapshots_file else None  # type: ignore[arg-type]
    orchestrator = SyncOrchestrator(snapshot_provider=provider)

    try:
        result = asyncio.run(orchestrator.execute(request))
    except DuplicateOperationError as e:
        console.print(f"[yellow]Duplicate batch skipped:[/yellow] {e.existing_operation_id or e.operation_hash}")
        raise typer.Exit(1) from e
    except SyncPersistenceError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold red")
        raise typer.Exit(1) from e

    title = "Sync preview (dry run)" if request.dry_run else f"Sync {result.operation_id}"
    _print_model(title, result.model_dump_json())


@app.command()
def undo(operation_id: str = typer.Argument(..., help="Sync operation id")) -> None:
    """Undo a sync operation within its undo window."""
    result = asyncio.run(UndoManager().undo(UndoRequest(operation_id=operation_id)))
    if result.status != "success":
        _print_model(f"Undo {result.status}", result.model_dump_json(), border_style="red")
        raise typer.Exit(1)
    _print_model("Undo succeeded", result.model_dump_json())


@app.command()
def history(limit: int = typer.Option(20, "--limit", "-n", help="Number of operations to show")) -> None:
    """List recent sync operations and their undo state."""
    table = Table(title="Design-sync operations")
    table.add_column("Operation")
    table.add_column("Created")
    table.add_column("Status")
    table.add_column("Components")
    table.add_column("Undo")

    with get_session() as session:
        for operation, entry in repository.list_operations(session, limit=limit):
            if entry is None:
                undo_state = "-"
            elif entry.undone_at is not None:
                undo_state = "undone"
            else:
                undo_state = f"until {as_utc(entry.expiration).isoformat()}"
            table.add_row(
                operation.id,
                as_utc(operation.created_at).isoformat(),
                operation.status,
                ", ".join(operation.components_affected),
                undo_state,
            )

    console.print(table)


@app.command()
def prune(
    undo_days: int | None = typer.Option(None, "--undo-days", help="Undo retention in days"),
    coverage_days: int | None = typer.Option(None, "--coverage-days", help="Coverage cache retention in days"),
) -> None:
    """Delete undo history and cached coverage past their retention windows."""
    try:
        result = run_prune_job(undo_retention_days=undo_days, coverage_retention_days=coverage_days)
    except Exception as e:
        console.print(f"[bold red]✗ Prune failed:[/bold red] {e}")
        logger.exception("Prune command failed")
        raise typer.Exit(code=1) from e
    console.print(
        f"[green]✓ Pruned {result.undo_deleted} undo entr(ies) and "
        f"{result.coverage_deleted} coverage report(s)[/green]"
    )


if __name__ == "__main__":
    app()
