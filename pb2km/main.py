"""pb2km CLI — all commands."""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich import print as rprint
from rich.table import Table

from pb2km.importer import resolve_statuses, run_import
from pb2km.kitemaker import KitemakerAPIError, KitemakerClient
from pb2km.loader import ExportError, load_export
from pb2km.models import ExportData
from pb2km.settings import EXIT_FAILURE, get_settings

app = typer.Typer(help="Import ProductBoard features and notes into Kitemaker", no_args_is_help=True)

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-p", help="Profile name from ~/.config/pb2km/config.toml"),
]
SpaceOpt = Annotated[str | None, typer.Option("--space", "-s", help="Kitemaker space key")]
NotesOpt = Annotated[Path | None, typer.Option("--notes", "-n", help="ProductBoard notes export (JSON)")]
FeaturesOpt = Annotated[Path | None, typer.Option("--features", "-f", help="ProductBoard features export (JSON)")]


def get_client(profile: str | None = None) -> KitemakerClient:
    return KitemakerClient(get_settings(profile=profile))


def _dump_exception(exc: Exception) -> str:
    payload = {"type": type(exc).__name__, "args": list(exc.args)}
    if isinstance(exc, KitemakerAPIError):
        payload["errors"] = exc.errors
    return json.dumps(payload, indent=2, default=str)


def _require_inputs(space: str | None, notes: Path | None, features: Path | None) -> None:
    if not space or not notes or not features:
        typer.echo("Please provide the space, notes, and features options", err=True)
        raise typer.Exit(EXIT_FAILURE)


def _load(features: Path, notes: Path) -> ExportData:
    try:
        return load_export(features, notes)
    except ExportError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(EXIT_FAILURE) from exc


@app.command("import")
def import_cmd(
    space: SpaceOpt = None,
    notes: NotesOpt = None,
    features: FeaturesOpt = None,
    profile: ProfileOpt = None,
) -> None:
    """Create Kitemaker work items, companies and feedback from a ProductBoard export."""
    client = get_client(profile)
    _require_inputs(space, notes, features)
    export = _load(features, notes)  # type: ignore[arg-type]

    try:
        report = run_import(client, export, space)  # type: ignore[arg-type]
    except Exception as exc:
        # Unexpected failures are reported but do not change the exit status.
        typer.echo(f"Error importing ProductBoard data: {exc}", err=True)
        typer.echo(_dump_exception(exc), err=True)
        return

    if report.failure is not None:
        typer.echo(report.failure.describe(), err=True)
        if report.failure.detail:
            typer.echo(json.dumps(report.failure.detail, indent=2), err=True)
        raise typer.Exit(EXIT_FAILURE)

    if report.companies_skipped:
        rprint(
            "[yellow]Warning:[/yellow] the notes reference companies, so company and feedback "
            "creation was skipped. Only work items were imported."
        )


@app.command("check")
def check_cmd(
    space: SpaceOpt = None,
    notes: NotesOpt = None,
    features: FeaturesOpt = None,
    profile: ProfileOpt = None,
) -> None:
    """Validate the export files and resolve statuses without creating anything."""
    client = get_client(profile)
    _require_inputs(space, notes, features)
    export = _load(features, notes)  # type: ignore[arg-type]

    try:
        found = client.get_space(space)  # type: ignore[arg-type]
    except KitemakerAPIError as exc:
        typer.echo(f"Error fetching space: {exc.message}", err=True)
        raise typer.Exit(EXIT_FAILURE) from exc
    if found is None:
        typer.echo(f"Could not find space '{space}' in Kitemaker", err=True)
        raise typer.Exit(EXIT_FAILURE)

    result = resolve_statuses(found, export.statuses)
    if not result.ok:
        typer.echo(result.describe(), err=True)
        raise typer.Exit(EXIT_FAILURE)

    table = Table(title=f"Status mapping for {found.name}")
    table.add_column("ProductBoard status", style="cyan")
    table.add_column("Kitemaker status ID", style="dim")
    for status, status_id in result.mapping.items():
        table.add_row(status, status_id)
    rprint(table)

    rprint(f"[green]✓[/green] {len(export.features)} feature(s), {len(export.notes)} note(s)")
    if export.companies:
        rprint(f"[yellow]Warning:[/yellow] {len(export.companies)} company name(s) found; import will skip companies and feedback.")


@app.command("statuses")
def statuses_cmd(
    space: Annotated[str, typer.Argument(help="Kitemaker space key")],
    profile: ProfileOpt = None,
) -> None:
    """List the statuses of a Kitemaker space."""
    client = get_client(profile)
    try:
        found = client.get_space(space)
    except KitemakerAPIError as exc:
        typer.echo(f"Error fetching space: {exc.message}", err=True)
        raise typer.Exit(EXIT_FAILURE) from exc
    if found is None:
        typer.echo(f"Could not find space '{space}' in Kitemaker", err=True)
        raise typer.Exit(EXIT_FAILURE)

    table = Table(title=f"{found.name} statuses")
    table.add_column("Name", style="cyan")
    table.add_column("ID", style="dim")
    for status in found.statuses:
        table.add_row(status.name, status.id)

    rprint(table)


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved configuration (masks the token)."""
    settings = get_settings(profile=profile)

    def mask(val: str | None) -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"...{val[-5:]}"

    table = Table(title="pb2km Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("token", mask(settings.token.get_secret_value() if settings.token else None))
    table.add_row("host", settings.host)
    table.add_row("endpoint", settings.endpoint)
    table.add_row("timeout", f"{settings.timeout:g}s")

    rprint(table)
