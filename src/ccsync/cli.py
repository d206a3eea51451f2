"""Command-line interface for ccsync."""

import subprocess
import sys
from pathlib import Path
from typing import Optional

import click
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config.settings import (
    BackupTypes,
    ProjectConfig,
    VersioningStrategy,
    get_claude_projects_path,
    get_config_path,
    init_config,
    load_config,
)
from .sources.scanner import scan_claude_files, scan_claude_projects
from .sync.engine import (
    GLOBAL_BACKUP_DIRNAME,
    SyncOutcome,
    backup_global as run_global_backup,
    resolve_project_destination,
    sync_project,
)
from .sync.history import HistoryEntry, HistoryError, HistoryLog
from .sync.versioning import list_versions
from .utils.file_utils import FileHelper
from .utils.logging import setup_logging

console = Console()

STRATEGY_CHOICE = click.Choice([s.value for s in VersioningStrategy])


def _record_history(entry: HistoryEntry) -> None:
    """Append to the history log; failures only warn."""
    try:
        HistoryLog().add_entry(entry)
    except (OSError, HistoryError) as e:
        console.print(f"⚠️ Warning: Failed to save history: {escape(str(e))}", style="yellow")


def _fail(message: str) -> None:
    console.print(f"❌ Error: {escape(message)}", style="red bold")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="ccsync")
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
@click.option('--log-file',
              type=click.Path(dir_okay=False, path_type=Path),
              help='Also write a full debug log to this file')
def cli(verbose: bool, log_file: Optional[Path]):
    """ccsync - back up CLAUDE.md files from your projects

    Copies project configuration files into one destination tree, optionally
    keeping timestamped or numbered versions of what they replaced.
    """
    setup_logging(log_level="DEBUG" if verbose else "WARNING", log_file=log_file)


@cli.command()
@click.option('--destination', '-d',
              type=click.Path(path_type=Path),
              help='Sync destination directory (or set CCSYNC_SYNC_DESTINATION)')
def init(destination: Optional[Path]):
    """Initialize ccsync configuration."""
    config_path = get_config_path()
    if config_path.exists():
        if not click.confirm(f"Configuration file {config_path} already exists. Overwrite?"):
            return

    try:
        config = init_config(
            config_path,
            str(destination.resolve()) if destination else None,
        )
    except (ValueError, OSError) as e:
        _fail(str(e))

    _record_history(HistoryEntry(action="init", success=True))

    console.print("✅ Configuration initialized successfully", style="green")
    console.print(f"Config file: {config_path}", style="dim")
    console.print(f"Sync destination: {config.sync_destination}", style="dim")


@cli.command('add-project')
@click.option('--name', '-n', required=True, help='Project name')
@click.option('--source', '-s', required=True,
              type=click.Path(path_type=Path),
              help='Source directory path')
@click.option('--destination', '-d',
              type=click.Path(path_type=Path),
              help='Custom destination path')
@click.option('--auto-sync', is_flag=True, help='Enable auto-sync for this project')
@click.option('--include-git-ignored', is_flag=True, help='Include git-ignored files')
@click.option('--backup-claude-md/--no-backup-claude-md', default=True,
              help='Backup claude.md files (default: on)')
@click.option('--backup-claude-projects', is_flag=True,
              help='Backup ~/.claude/projects/ data')
@click.option('--backup-settings-local', is_flag=True,
              help='Backup .claude/settings.local.json files')
@click.option('--versioning', type=STRATEGY_CHOICE, default='none', show_default=True,
              help='Versioning strategy')
@click.option('--keep-versions', type=click.IntRange(min=0), default=5, show_default=True,
              help='Number of versions to keep')
def add_project(name: str, source: Path, destination: Optional[Path], auto_sync: bool,
                include_git_ignored: bool, backup_claude_md: bool,
                backup_claude_projects: bool, backup_settings_local: bool,
                versioning: str, keep_versions: int):
    """Add a new project to sync."""
    try:
        config = load_config()

        source_path = source.resolve()
        if not source_path.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {source_path}")

        project = ProjectConfig(
            name=name,
            source=str(source_path),
            destination=str(destination.resolve()) if destination else None,
            auto_sync=auto_sync,
            include_git_ignored=include_git_ignored,
            backup_types=BackupTypes(
                claude_md=backup_claude_md,
                claude_projects=backup_claude_projects,
                settings_local=backup_settings_local,
            ),
            versioning_strategy=VersioningStrategy(versioning),
            keep_versions=keep_versions,
        )
        config.add_project(project)
        config.to_file(get_config_path())
    except Exception as e:
        _fail(str(e))

    _record_history(HistoryEntry(action="add-project", project=name, success=True))
    console.print(f"✅ Project '{name}' added successfully", style="green")


@cli.command('remove-project')
@click.argument('name')
def remove_project(name: str):
    """Remove a project from the configuration (synced files are kept)."""
    try:
        config = load_config()
        config.remove_project(name)
        config.to_file(get_config_path())
    except KeyError as e:
        _fail(e.args[0])
    except Exception as e:
        _fail(str(e))

    _record_history(HistoryEntry(action="remove-project", project=name, success=True))
    console.print(f"✅ Project '{name}' removed", style="green")


def _report_outcome(outcome: SyncOutcome) -> None:
    if outcome.success:
        console.print(
            f"✅ Synced {outcome.files_synced} files "
            f"({outcome.files_skipped} unchanged)", style="green"
        )
    else:
        console.print("❌ Sync completed with errors:", style="red")
        for error in outcome.errors:
            rprint(f"   • {escape(error)}")


def _run_sync(project_name: Optional[str]):
    try:
        config = load_config()
    except Exception as e:
        _fail(str(e))

    if project_name:
        project = config.get_project_by_name(project_name)
        if project is None:
            _fail(f"Project '{project_name}' not found")
        projects = [project]
    else:
        projects = config.projects

    if not projects:
        console.print("No projects configured", style="yellow")
        return

    all_ok = True
    for project in projects:
        console.print(f"🚀 Syncing project: {project.name}", style="blue")
        try:
            outcome = sync_project(project, config.sync_destination)
        except Exception as e:
            all_ok = False
            console.print(f"❌ {escape(str(e))}", style="red")
            _record_history(HistoryEntry(
                action="sync", project=project.name, success=False, details=str(e),
            ))
            continue

        all_ok = all_ok and outcome.success
        _record_history(HistoryEntry(
            action="sync",
            project=project.name,
            files_count=outcome.files_synced,
            success=outcome.success,
            details=", ".join(outcome.errors) or None,
        ))
        _report_outcome(outcome)

    if config.history_retention > 0:
        try:
            HistoryLog().cleanup(config.history_retention)
        except (OSError, HistoryError) as e:
            console.print(f"⚠️ Warning: Failed to clean up history: {escape(str(e))}", style="yellow")

    if config.hooks and config.hooks.post_sync:
        console.print("Running post-sync hook...", style="dim")
        try:
            subprocess.run(config.hooks.post_sync, shell=True, check=True)
        except (subprocess.CalledProcessError, OSError) as e:
            _fail(f"Post-sync hook failed: {e}")

    if not all_ok:
        sys.exit(1)


@cli.command()
@click.argument('project', required=False)
def sync(project: Optional[str]):
    """Sync a single project, or all projects when none is given."""
    _run_sync(project)


@cli.command('sync-all')
def sync_all():
    """Sync all projects."""
    _run_sync(None)


@cli.command()
def status():
    """Show status of all projects."""
    try:
        config = load_config()
    except Exception as e:
        _fail(str(e))

    if not config.projects:
        console.print("No projects configured", style="yellow")
    else:
        table = Table(title="Projects")
        table.add_column("Name", style="cyan")
        table.add_column("Source")
        table.add_column("Destination", style="magenta")
        table.add_column("Backup Types")
        table.add_column("Versioning")
        table.add_column("Files Found", justify="right", style="green")

        for project in config.projects:
            try:
                found = str(len(scan_claude_files(
                    project.source,
                    include_git_ignored=project.include_git_ignored,
                    backup_types=project.backup_types,
                )))
            except OSError:
                found = "[red]error scanning[/red]"

            versioning = project.versioning_strategy.value
            if project.versioning_strategy is not VersioningStrategy.NONE:
                versioning += f" (keep {project.keep_versions})"

            table.add_row(
                project.name,
                project.source,
                str(resolve_project_destination(project, config.sync_destination)),
                ", ".join(project.backup_types.enabled_labels()) or "none",
                versioning,
                found,
            )

        console.print(table)

    rprint(f"\nSync destination: {config.sync_destination}")
    rprint(f"History retention: {config.history_retention} days")


@cli.command()
@click.argument('project', required=False)
@click.option('--limit', '-l', type=click.IntRange(min=1), default=10, show_default=True,
              help='Limit number of entries')
def history(project: Optional[str], limit: int):
    """Show sync history."""
    try:
        entries = HistoryLog().get_entries(project, limit)
    except (OSError, HistoryError) as e:
        _fail(str(e))

    if not entries:
        console.print("No history entries found", style="yellow")
        return

    table = Table(title="Sync History")
    table.add_column("Time")
    table.add_column("Action", style="cyan")
    table.add_column("Project")
    table.add_column("Files", justify="right")
    table.add_column("Status")
    table.add_column("Details", style="dim")

    for entry in entries:
        files = entry.files_count if entry.files_count is not None else entry.files_synced
        table.add_row(
            entry.timestamp.strftime('%Y-%m-%d %H:%M:%S'),
            entry.action,
            entry.project or "",
            "" if files is None else str(files),
            "[green]✓[/green]" if entry.success else "[red]✗[/red]",
            escape(entry.details or ""),
        )

    console.print(table)


@cli.command('backup-global')
@click.option('--destination', '-d',
              type=click.Path(path_type=Path),
              help='Custom destination path (default: <sync destination>/global-claude-backup)')
@click.option('--versioning', type=STRATEGY_CHOICE, default='timestamp', show_default=True,
              help='Versioning strategy')
@click.option('--keep-versions', type=click.IntRange(min=0), default=10, show_default=True,
              help='Number of versions to keep')
@click.option('--dry-run', is_flag=True,
              help='Show what would be backed up without actually doing it')
def backup_global(destination: Optional[Path], versioning: str, keep_versions: int, dry_run: bool):
    """Backup global Claude configuration (~/.claude/projects/)."""
    try:
        config = load_config()
        target = destination or Path(config.sync_destination) / GLOBAL_BACKUP_DIRNAME
        projects_path = get_claude_projects_path()
        files = scan_claude_projects(projects_path)
    except Exception as e:
        _fail(str(e))

    console.print(f"Found {len(files)} files in ~/.claude/projects/", style="cyan")

    if dry_run:
        console.print("\n🔍 DRY RUN - files that would be backed up:", style="yellow bold")
        total_size = 0
        for file in files:
            relative = escape(file.relative_to(projects_path).as_posix())
            try:
                total_size += file.stat().st_size
            except OSError:
                rprint(f"   • ~/.claude/projects/{relative} [yellow](unreadable)[/yellow]")
                continue
            rprint(f"   • ~/.claude/projects/{relative}")
        console.print(f"\nTotal size: {FileHelper.format_file_size(total_size)}", style="dim")
        console.print(f"Destination: {target}", style="dim")
        console.print(f"Versioning: {versioning}", style="dim")
        if versioning != VersioningStrategy.NONE.value:
            console.print(f"Keep versions: {keep_versions}", style="dim")
        return

    console.print("\nBacking up global Claude configuration...", style="blue")
    try:
        outcome = run_global_backup(
            target, VersioningStrategy(versioning), keep_versions, projects_path,
        )
    except Exception as e:
        _fail(str(e))

    _record_history(HistoryEntry(
        action="backup-global",
        project="global",
        files_synced=outcome.files_synced,
        success=outcome.success,
        details=", ".join(outcome.errors) or None,
    ))
    _report_outcome(outcome)
    console.print(f"Destination: {target}", style="dim")

    if not outcome.success:
        sys.exit(1)


@cli.command()
@click.argument('file', type=click.Path(path_type=Path))
def versions(file: Path):
    """List the saved versions of a destination FILE, newest first."""
    try:
        found = list_versions(file.resolve())
    except OSError as e:
        _fail(str(e))

    if not found:
        console.print(f"No versions found for {file}", style="yellow")
        return

    table = Table(title=f"Versions of {file.name}")
    table.add_column("File", style="cyan")
    table.add_column("Version")
    table.add_column("Time")
    table.add_column("Size", justify="right")

    for version in found:
        try:
            size = FileHelper.format_file_size(version.base_path.stat().st_size)
        except OSError:
            size = "?"
        table.add_row(
            version.base_path.name,
            version.version,
            version.timestamp.strftime('%Y-%m-%d %H:%M:%S'),
            size,
        )

    console.print(table)


if __name__ == '__main__':
    cli()
