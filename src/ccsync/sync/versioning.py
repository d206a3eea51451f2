"""Versioned backups of destination files.

For a destination ``name.ext`` the prior contents are kept beside it as

* ``name.YYYYMMDD_HHMMSS.ext`` under the timestamp strategy
* ``name.vNNN.ext`` under the incremental strategy (3 digits, wider past 999)

Both forms are recognised when reading history, whichever strategy is
active, because a directory may hold versions from before a strategy
switch.
"""

import logging
import re
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from ..config.settings import VersioningStrategy

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
COUNTER_WIDTH = 3


@dataclass(frozen=True)
class VersionedFile:
    """One backup version of a destination file found on disk."""
    base_path: Path
    version: str
    timestamp: datetime

    @property
    def strategy(self) -> VersioningStrategy:
        if self.version.isdigit():
            return VersioningStrategy.INCREMENTAL
        return VersioningStrategy.TIMESTAMP

    @property
    def counter(self) -> Optional[int]:
        """Numeric counter for incremental versions, None for timestamped ones."""
        if self.strategy is VersioningStrategy.INCREMENTAL:
            return int(self.version)
        return None

    def sort_key(self):
        # Equal timestamps fall back to the token so ordering never depends
        # on directory listing order; wider counters sort above narrower ones.
        return (self.timestamp, len(self.version), self.version)


def _split_name(destination_path: Path):
    """Return (stem, extension) the way version names are built around them."""
    ext = destination_path.suffix
    stem = destination_path.name[:-len(ext)] if ext else destination_path.name
    return stem, ext


def _version_patterns(destination_path: Path):
    stem, ext = _split_name(destination_path)
    stem, ext = re.escape(stem), re.escape(ext)
    timestamp_pattern = re.compile(rf"^{stem}\.(\d{{8}}_\d{{6}}){ext}$")
    incremental_pattern = re.compile(rf"^{stem}\.v(\d{{{COUNTER_WIDTH},}}){ext}$")
    return timestamp_pattern, incremental_pattern


def list_versions(destination_path: Union[str, Path]) -> List[VersionedFile]:
    """Enumerate existing backup versions of a destination file.
    
    Args:
        destination_path: Path of the current (unversioned) destination file
        
    Returns:
        Versions ordered newest first
        
    Raises:
        OSError: If the containing directory exists but cannot be listed
    """
    destination_path = Path(destination_path)
    directory = destination_path.parent
    timestamp_pattern, incremental_pattern = _version_patterns(destination_path)
    
    try:
        entries = list(directory.iterdir())
    except FileNotFoundError:
        return []
    
    versions = []
    for entry in entries:
        match = timestamp_pattern.match(entry.name)
        if match:
            token = match.group(1)
            try:
                timestamp = datetime.strptime(token, TIMESTAMP_FORMAT)
            except ValueError:
                # Looks like a version but is not a real date (e.g. month 13)
                logger.debug(f"Ignoring malformed timestamp version: {entry.name}")
                continue
            versions.append(VersionedFile(entry, token, timestamp))
            continue
        
        match = incremental_pattern.match(entry.name)
        if match:
            # The counter says nothing about wall-clock time, use mtime
            modified = datetime.fromtimestamp(entry.stat().st_mtime)
            versions.append(VersionedFile(entry, match.group(1), modified))
    
    versions.sort(key=VersionedFile.sort_key, reverse=True)
    return versions


def next_version_name(destination_path: Union[str, Path], strategy: VersioningStrategy,
                      next_counter: Optional[int] = None,
                      now: Optional[datetime] = None) -> Path:
    """Build the path a destination file is renamed to when it is versioned.
    
    Args:
        destination_path: Path of the current destination file
        strategy: TIMESTAMP or INCREMENTAL
        next_counter: Counter for the incremental strategy (defaults to 1)
        now: Time for the timestamp strategy (defaults to the current local time)
        
    Returns:
        Versioned path in the same directory
    """
    destination_path = Path(destination_path)
    stem, ext = _split_name(destination_path)
    strategy = VersioningStrategy(strategy)
    
    if strategy is VersioningStrategy.TIMESTAMP:
        # Two renames within the same second produce the same name and the
        # second rename replaces the first version.
        token = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    elif strategy is VersioningStrategy.INCREMENTAL:
        counter = next_counter or 1
        token = f"v{counter:0{COUNTER_WIDTH}d}"
    else:
        raise ValueError(f"Strategy '{strategy.value}' does not produce versioned names")
    
    return destination_path.with_name(f"{stem}.{token}{ext}")


def next_counter(destination_path: Union[str, Path]) -> int:
    """One more than the highest incremental counter on disk, or 1 if none exist."""
    counters = [v.counter for v in list_versions(destination_path) if v.counter is not None]
    return max(counters, default=0) + 1


def _copy_file(source_path: Path, destination_path: Path) -> None:
    # copyfile refuses a directory at the destination instead of copying into it
    shutil.copyfile(source_path, destination_path)
    shutil.copymode(source_path, destination_path)


def write_versioned(source_path: Union[str, Path], destination_path: Union[str, Path],
                    strategy: VersioningStrategy) -> Path:
    """Copy source onto destination, first moving any existing destination aside.
    
    With ``none`` the destination is simply overwritten. Otherwise an existing
    destination is renamed to its next version name before the copy. If the
    rename succeeds but the copy fails, the destination is left absent and the
    old content survives only under the versioned name.
    
    Args:
        source_path: File to copy
        destination_path: Where the current copy lives
        strategy: Versioning strategy for this sync unit
        
    Returns:
        The destination path written
        
    Raises:
        IsADirectoryError: If the destination path is a directory
        OSError: If the catalog read, rename or copy fails
    """
    source_path = Path(source_path)
    destination_path = Path(destination_path)
    strategy = VersioningStrategy(strategy)
    
    if destination_path.is_dir():
        raise IsADirectoryError(f"Destination is a directory: {destination_path}")
    
    if strategy is not VersioningStrategy.NONE and destination_path.exists():
        if strategy is VersioningStrategy.INCREMENTAL:
            versioned_path = next_version_name(
                destination_path, strategy, next_counter(destination_path)
            )
        else:
            versioned_path = next_version_name(destination_path, strategy)
        
        destination_path.rename(versioned_path)
        logger.debug(f"Versioned {destination_path.name} -> {versioned_path.name}")
        
        try:
            _copy_file(source_path, destination_path)
        except OSError:
            logger.error(
                f"Copy failed after versioning; previous content kept at {versioned_path}"
            )
            raise
        return destination_path
    
    _copy_file(source_path, destination_path)
    return destination_path


def prune_versions(destination_path: Union[str, Path], keep_versions: int) -> int:
    """Delete all but the newest ``keep_versions`` versions of a destination file.
    
    A non-positive ``keep_versions`` disables pruning rather than meaning
    "keep nothing". Deletions are best effort: one that fails is logged and
    not counted, and the remaining deletions still run.
    
    Args:
        destination_path: Path of the current destination file
        keep_versions: Number of versions to retain
        
    Returns:
        Number of version files deleted
        
    Raises:
        OSError: If the version catalog cannot be read
    """
    if keep_versions <= 0:
        return 0
    
    versions = list_versions(destination_path)
    if len(versions) <= keep_versions:
        return 0
    
    deleted = 0
    for version in versions[keep_versions:]:
        try:
            version.base_path.unlink()
            deleted += 1
        except OSError as e:
            logger.warning(f"Could not prune old version {version.base_path}: {e}")
    
    if deleted:
        logger.debug(f"Pruned {deleted} old versions of {Path(destination_path).name}")
    return deleted
