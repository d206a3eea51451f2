"""
ccsync

Backs up CLAUDE.md and related configuration files from many project
directories into one destination tree, with optional versioned history.
"""

__version__ = "1.0.0"
__description__ = "Sync Claude configuration files into a versioned backup tree"

from .config.settings import SyncConfig, VersioningStrategy
from .sync.engine import SyncOutcome, sync_files, sync_project

__all__ = ["SyncConfig", "VersioningStrategy", "SyncOutcome", "sync_files", "sync_project"]
