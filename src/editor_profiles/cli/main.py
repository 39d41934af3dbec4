"""Main CLI entry point for Editor Profiles.

Every command loads the profiles, applies one edit to the runtime index
and saves, the same way an editor window does per user action.
"""

from pathlib import Path
from typing import Any
import sys
import threading

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from editor_profiles import __version__
from editor_profiles.config import SyncConfig, load_sync_config
from editor_profiles.engine.runtime_index import RuntimeIndex
from editor_profiles.engine.synchronizer import Synchronizer
from editor_profiles.engine.validation_engine import ValidationResult
from editor_profiles.importer.executor import CancellationToken, ImportExecutor, ImportResult
from editor_profiles.importer.sheets import HttpTextFetcher
from editor_profiles.profiles.base import BuildSettings, ImportProfile, Profile
from editor_profiles.profiles.kinds import SCENE_SUFFIX
from editor_profiles.profiles.loader import DocumentStore
from editor_profiles.profiles.registry import get_global_kind_registry
from editor_profiles.resources.assets import AssetDatabase
from editor_profiles.resources.resolver import AssetResolver
from editor_profiles.utils.log import setup_logging

console = Console()


class CommandError(Exception):
    """Raised when a command cannot be carried out as requested."""


@click.group()
@click.version_option(version=__version__, prog_name="editor-profiles")
@click.option("--project-root", "-r", type=click.Path(file_okay=False), default=".", help="Editor project root")
@click.option("--kind", "-k", type=click.Choice(["import", "scene"]), default="import", help="Profile kind")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False), help="YAML sync configuration")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(
    ctx: click.Context,
    project_root: str,
    kind: str,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Editor Profiles - manage GUID-indexed editor profiles.

    Profiles are stored in a settings document inside the editor project
    and reference spreadsheet sheets (import profiles) or scene assets
    (scene profiles).
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["project_root"] = project_root
    ctx.obj["kind"] = kind
    ctx.obj["config_path"] = config_path
    setup_logging("DEBUG" if verbose else None)


@cli.command(name="list")
@click.pass_context
def list_profiles(ctx: click.Context) -> None:
    """List profiles in display order."""
    try:
        sync = _build_synchronizer(ctx)
        index = sync.load()

        if not index.has_profiles() and index.default_profile is None:
            console.print("[yellow]No profiles found[/yellow]")
            return

        table = Table(title=f"{sync.kind.name.capitalize()} Profiles")
        table.add_column("Index", justify="right", style="cyan")
        table.add_column("Name")
        table.add_column("ID", style="dim")
        table.add_column("References", justify="right")

        if index.default_profile is not None:
            table.add_row(
                str(sync.kind.selection_floor),
                f"[green]{index.default_profile.name}[/green]",
                "-",
                str(len(index.default_profile.references)),
            )

        for i, profile_id in enumerate(index.ordered_ids):
            profile = index.get_profile(profile_id)
            table.add_row(
                str(i),
                profile.name if profile else "-",
                profile_id,
                str(len(profile.references)) if profile else "0",
            )

        console.print(table)

    except Exception as e:
        _report_error(ctx, e)


@cli.command()
@click.argument("position", type=int)
@click.pass_context
def show(ctx: click.Context, position: int) -> None:
    """Show one profile and its resolved references.

    POSITION is the profile's index as shown by `list`.
    """
    try:
        sync = _build_synchronizer(ctx)
        index = sync.load()
        profile = _select(index, position, allow_default=True)

        fields = profile.model_dump(exclude={"references"})
        lines = [f"[cyan]{name}:[/cyan] {value}" for name, value in fields.items()]
        console.print(Panel.fit("\n".join(lines), title=profile.name or "(unnamed)"))

        table = Table(title="References")
        table.add_column("#", justify="right", style="cyan")
        table.add_column("Reference")
        table.add_column("Name")
        table.add_column("Path")
        for i, (reference, descriptor) in enumerate(index.descriptors_at_selection()):
            if descriptor is None:
                table.add_row(str(i), reference, "[red]missing[/red]", "")
            else:
                table.add_row(str(i), reference, descriptor.name, descriptor.path)
        console.print(table)

    except Exception as e:
        _report_error(ctx, e)


@cli.command()
@click.option("--name", "-n", help="Name of the new profile")
@click.pass_context
def add(ctx: click.Context, name: str | None) -> None:
    """Add a new profile."""
    try:
        sync = _build_synchronizer(ctx)
        index = sync.load()

        profile_id = index.add_profile()
        index.select_last()
        if name:
            index.rename_selected_profile(name)

        _save(sync, index)
        console.print(f"[green]Added profile {profile_id} at index {index.selection}[/green]")

    except Exception as e:
        _report_error(ctx, e)


@cli.command()
@click.argument("position", type=int)
@click.pass_context
def remove(ctx: click.Context, position: int) -> None:
    """Remove the profile at POSITION."""
    try:
        sync = _build_synchronizer(ctx)
        index = sync.load()
        profile = _select(index, position)

        index.remove_profile_at_selection()
        index.reset_selection()

        _save(sync, index)
        console.print(f"[green]Removed profile '{profile.name}' ({profile.profile_id})[/green]")

    except Exception as e:
        _report_error(ctx, e)


@cli.command()
@click.argument("position", type=int)
@click.argument("name")
@click.pass_context
def rename(ctx: click.Context, position: int, name: str) -> None:
    """Rename the profile at POSITION."""
    try:
        sync = _build_synchronizer(ctx)
        index = sync.load()
        _select(index, position)

        index.rename_selected_profile(name)

        _save(sync, index)
        console.print(f"[green]Renamed profile {position} to '{name}'[/green]")

    except Exception as e:
        _report_error(ctx, e)


@cli.command(name="set")
@click.argument("position", type=int)
@click.argument("field")
@click.argument("value")
@click.pass_context
def set_field(ctx: click.Context, position: int, field: str, value: str) -> None:
    """Set FIELD of the profile at POSITION to VALUE.

    \b
    Import profile fields:
      name, google_sheets_id, asset_path, asset_prefix, import_mode
    """
    try:
        sync = _build_synchronizer(ctx)
        index = sync.load()
        profile = _select(index, position)

        if not index.set_field_at_selection(field, value):
            editable = ", ".join(profile.editable_fields())
            raise CommandError(f"Field '{field}' is not editable (editable: {editable})")

        _save(sync, index)
        console.print(f"[green]Set {field} of profile {position}[/green]")

    except Exception as e:
        _report_error(ctx, e)


@cli.command(name="add-ref")
@click.argument("position", type=int)
@click.argument("reference")
@click.pass_context
def add_ref(ctx: click.Context, position: int, reference: str) -> None:
    """Add REFERENCE (sheet name or scene asset id) to the profile at POSITION."""
    try:
        sync = _build_synchronizer(ctx)
        index = sync.load()
        _select(index, position)

        if not index.add_reference_to_selected_profile(reference):
            console.print(f"[yellow]Profile already references {reference}[/yellow]")
            return
        if index.descriptors.get(reference) is None:
            console.print(f"[yellow]Warning: {reference} does not resolve and will be pruned[/yellow]")

        _save(sync, index)
        console.print(f"[green]Added {reference} to profile {position}[/green]")

    except Exception as e:
        _report_error(ctx, e)


@cli.command(name="remove-ref")
@click.argument("position", type=int)
@click.argument("ref_index", type=int)
@click.pass_context
def remove_ref(ctx: click.Context, position: int, ref_index: int) -> None:
    """Remove the reference at REF_INDEX from the profile at POSITION."""
    try:
        sync = _build_synchronizer(ctx)
        index = sync.load()
        _select(index, position)

        removed = index.remove_reference_at_index(ref_index)

        _save(sync, index)
        console.print(f"[green]Removed {removed} from profile {position}[/green]")

    except Exception as e:
        _report_error(ctx, e)


@cli.command()
@click.option("--write", is_flag=True, help="Write the repaired settings back to disk")
@click.pass_context
def validate(ctx: click.Context, write: bool) -> None:
    """Validate the settings document and report repairs."""
    try:
        sync = _build_synchronizer(ctx)
        index = sync.load()
        result = sync.last_validation or ValidationResult(valid=True)

        _print_validation_result(f"{sync.kind.name} settings", result)

        if write:
            _save(sync, index)
            console.print("[green]Settings written[/green]")

    except Exception as e:
        _report_error(ctx, e)


@cli.command(name="import")
@click.argument("position", type=int)
@click.option("--dry-run", is_flag=True, help="Show what would be downloaded without fetching")
@click.pass_context
def import_sheets(ctx: click.Context, position: int, dry_run: bool) -> None:
    """Download the sheets of the import profile at POSITION.

    Press Ctrl-C to cancel; sheets already written are kept.
    """
    verbose = ctx.obj.get("verbose", False)

    try:
        sync = _build_synchronizer(ctx)
        if sync.kind.name != "import":
            raise CommandError("Only import profiles can be imported")

        index = sync.load()
        profile = _select(index, position)

        check = sync.validator.check_import_profile(profile)
        if check.issues:
            _print_validation_result(profile.name, check)
        if not check.valid:
            sys.exit(1)

        executor = ImportExecutor(
            fetcher=HttpTextFetcher(timeout=sync.config.fetch_timeout),
            project_root=sync.config.project_root,
        )

        if dry_run:
            _show_dry_run(executor, profile)
            return

        result = _run_import(executor, profile)

        color = "green" if result.completed else "yellow"
        console.print(Panel.fit(
            f"[{color}]{result.state.value.capitalize()}: wrote {len(result.written)} file(s) "
            f"in {result.duration_seconds:.2f}s[/{color}]",
            title="Import",
        ))
        for label, reason in result.failed.items():
            console.print(f"  [red]FAILED[/red] {label}: {reason}")

        if verbose:
            console.print("\nWritten files:")
            for path in result.written:
                console.print(f"  - {path}")

    except Exception as e:
        _report_error(ctx, e)


def _run_import(executor: ImportExecutor, profile: ImportProfile) -> ImportResult:
    """Run an import on a worker thread so Ctrl-C can cancel it."""
    token = CancellationToken()
    outcome: dict[str, Any] = {}

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Downloading sheets...", total=None)

        def on_progress(done: int, total: int, label: str) -> None:
            progress.update(task, description=f"Downloaded {label} ({done}/{total})")

        def work() -> None:
            try:
                outcome["result"] = executor.run(profile, token=token, on_progress=on_progress)
            except Exception as e:
                outcome["error"] = e

        worker = threading.Thread(target=work, name="sheet-import", daemon=True)
        worker.start()
        while worker.is_alive():
            try:
                worker.join(timeout=0.1)
            except KeyboardInterrupt:
                token.cancel()
                progress.update(task, description="Cancelling after the current sheet...")

    if "error" in outcome:
        raise outcome["error"]
    return outcome["result"]


def _build_synchronizer(ctx: click.Context) -> Synchronizer:
    """Create the synchronizer for the kind selected on the command line."""
    kind_name = ctx.obj["kind"]
    if ctx.obj.get("config_path"):
        config = load_sync_config(ctx.obj["config_path"], kind=kind_name, project_root=ctx.obj["project_root"])
    else:
        config = SyncConfig.for_kind(kind_name, Path(ctx.obj["project_root"]))

    assets = AssetDatabase(config.project_root)
    documents = DocumentStore()
    registry = get_global_kind_registry()

    if kind_name == "scene":
        kind = registry.create(
            "scene",
            resolver=AssetResolver(assets, suffix=SCENE_SUFFIX),
            build_settings=lambda: documents.read(config.build_settings_file, BuildSettings),
        )
    else:
        kind = registry.create(kind_name)

    return Synchronizer(kind, config, assets=assets, documents=documents)


def _select(index: RuntimeIndex, position: int, allow_default: bool = False) -> Profile:
    """Select a profile by position, failing if nothing is there."""
    index.set_selection(position)
    if index.selection != position:
        raise CommandError(f"No profile at index {position}")

    profile = index.selected_profile()
    if profile is None or (index.is_default_selected() and not allow_default):
        raise CommandError(f"No editable profile at index {position}")
    return profile


def _save(sync: Synchronizer, index: RuntimeIndex) -> None:
    if not sync.save(index):
        raise CommandError("Failed to save settings")


def _report_error(ctx: click.Context, error: Exception) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    if ctx.obj.get("verbose", False):
        import traceback
        console.print("".join(traceback.format_exception(error)))
    sys.exit(1)


def _show_dry_run(executor: ImportExecutor, profile: ImportProfile) -> None:
    """Show what an import would download."""
    console.print(Panel.fit(
        f"Profile: [cyan]{profile.name}[/cyan]\n"
        f"Document: {profile.google_sheets_id or '-'}\n"
        f"Mode: {profile.import_mode.name}",
        title="Dry Run",
    ))

    table = Table(title="Sheets to Download")
    table.add_column("Sheet", style="cyan")
    table.add_column("URL")
    table.add_column("File")

    for download in executor.plan(profile):
        table.add_row(download.label, download.url, str(download.target))

    console.print(table)


def _print_validation_result(name: str, result: ValidationResult) -> None:
    """Print validation results."""
    status = "[green]VALID[/green]" if result.valid else "[red]INVALID[/red]"
    console.print(f"\n{name}: {status}")

    if not result.issues:
        console.print("  No repairs needed")
        return

    for issue in result.issues:
        color = {
            "error": "red",
            "warning": "yellow",
            "info": "blue",
        }.get(issue.severity.value, "white")

        console.print(f"  [{color}]{issue.severity.value.upper()}[/{color}]: {issue.message}")
        if issue.path:
            console.print(f"    Path: {issue.path}")


if __name__ == "__main__":
    cli()
