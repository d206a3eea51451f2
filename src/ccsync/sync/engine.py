"""Sync orchestration: drives versioned writes and pruning over a file list."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..config.settings import ProjectConfig, VersioningStrategy, get_claude_projects_path
from ..sources.scanner import scan_claude_files, scan_claude_projects
from ..utils.file_utils import FileHelper
from ..utils.logging import TimedOperation
from .lock import DestinationLock
from .versioning import prune_versions, write_versioned

logger = logging.getLogger(__name__)

GLOBAL_BACKUP_DIRNAME = "global-claude-backup"


@dataclass
class SyncOutcome:
    """Aggregate result of syncing one sync unit."""
    success: bool = True
    files_synced: int = 0
    files_skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.success = False


def sync_files(files: Iterable[Union[str, Path]], source_root: Union[str, Path],
               destination_root: Union[str, Path],
               strategy: VersioningStrategy = VersioningStrategy.NONE,
               keep_versions: int = 0) -> SyncOutcome:
    """Sync discovered files from source_root into destination_root.
    
    Files are processed one at a time in the given order. A file whose
    destination already has identical content is skipped. A failure on one
    file is recorded in the outcome and the remaining files still run.
    
    Args:
        files: Absolute paths under source_root
        source_root: Root the files were discovered under
        destination_root: Root of the destination tree
        strategy: Versioning strategy for overwritten files
        keep_versions: Versions kept per file after pruning (<= 0 disables pruning)
        
    Returns:
        SyncOutcome for the run
    """
    strategy = VersioningStrategy(strategy)
    outcome = SyncOutcome()
    
    for file_path in files:
        source = Path(file_path)
        try:
            destination = FileHelper.reroot(source, source_root, destination_root)
            
            if FileHelper.files_identical(source, destination):
                logger.debug(f"Unchanged, skipping {source}")
                outcome.files_skipped += 1
                continue
            
            destination.parent.mkdir(parents=True, exist_ok=True)
            write_versioned(source, destination, strategy)
            
            if strategy is not VersioningStrategy.NONE:
                try:
                    prune_versions(destination, keep_versions)
                except OSError as e:
                    logger.warning(f"Pruning versions of {destination} failed: {e}")
            
            outcome.files_synced += 1
            logger.debug(f"Synced {source} -> {destination}")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to sync {source}: {e}")
            outcome.add_error(f"Failed to sync {source}: {e}")
    
    return outcome


def resolve_project_destination(project: ProjectConfig, default_destination: Union[str, Path]) -> Path:
    """A project's own destination, or <default_destination>/<project name>."""
    if project.destination:
        return Path(project.destination)
    return Path(default_destination) / project.name


def _run_locked(files: List[Path], source_root: Path, destination: Path,
                strategy: VersioningStrategy, keep_versions: int, lock: bool) -> SyncOutcome:
    if not lock:
        return sync_files(files, source_root, destination, strategy, keep_versions)
    with DestinationLock(destination):
        return sync_files(files, source_root, destination, strategy, keep_versions)


def sync_project(project: ProjectConfig, default_destination: Union[str, Path],
                 lock: bool = True) -> SyncOutcome:
    """Discover and sync one configured project.
    
    Args:
        project: Project configuration
        default_destination: Sync destination used when the project sets none
        lock: Hold the destination lock for the duration of the run
        
    Returns:
        SyncOutcome for the project
        
    Raises:
        FileNotFoundError, NotADirectoryError: If the project source is unusable
        SyncLockError: If another run holds the destination
    """
    destination = resolve_project_destination(project, default_destination)
    
    with TimedOperation(logger, f"sync of project '{project.name}'"):
        files = scan_claude_files(
            project.source,
            include_git_ignored=project.include_git_ignored,
            backup_types=project.backup_types,
        )
        logger.info(f"Found {len(files)} files in {project.source}")
        
        outcome = _run_locked(
            files, Path(os.path.abspath(project.source)), destination,
            project.versioning_strategy, project.keep_versions, lock,
        )
    
    logger.info(
        f"Project '{project.name}': {outcome.files_synced} synced, "
        f"{outcome.files_skipped} unchanged, {len(outcome.errors)} failed"
    )
    return outcome


def backup_global(destination: Union[str, Path],
                  strategy: VersioningStrategy = VersioningStrategy.TIMESTAMP,
                  keep_versions: int = 10,
                  projects_path: Optional[Union[str, Path]] = None,
                  lock: bool = True) -> SyncOutcome:
    """Back up every file under the Claude projects directory.
    
    Args:
        destination: Destination root for the backup
        strategy: Versioning strategy for overwritten files
        keep_versions: Versions kept per file
        projects_path: Directory to back up (defaults to ~/.claude/projects)
        lock: Hold the destination lock for the duration of the run
        
    Returns:
        SyncOutcome for the backup
        
    Raises:
        FileNotFoundError: If the projects directory does not exist
        SyncLockError: If another run holds the destination
    """
    source_root = Path(os.path.abspath(projects_path or get_claude_projects_path()))
    
    with TimedOperation(logger, "global backup"):
        files = scan_claude_projects(source_root)
        logger.info(f"Found {len(files)} files in {source_root}")
        outcome = _run_locked(files, source_root, Path(destination), strategy, keep_versions, lock)
    
    return outcome
