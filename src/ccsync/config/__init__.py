"""Configuration management for ccsync."""

from .settings import (
    BackupTypes,
    HooksConfig,
    ProjectConfig,
    ProjectExistsError,
    SyncConfig,
    VersioningStrategy,
    get_claude_projects_path,
    get_config_path,
    init_config,
    load_config,
)

__all__ = [
    "BackupTypes",
    "HooksConfig",
    "ProjectConfig",
    "ProjectExistsError",
    "SyncConfig",
    "VersioningStrategy",
    "get_claude_projects_path",
    "get_config_path",
    "init_config",
    "load_config",
]
