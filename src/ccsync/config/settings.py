"""Configuration settings and models for ccsync."""

import os
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class VersioningStrategy(str, Enum):
    """How prior destination content is preserved before an overwrite."""
    NONE = "none"
    TIMESTAMP = "timestamp"
    INCREMENTAL = "incremental"


class ProjectExistsError(ValueError):
    """Raised when adding a project whose name is already configured."""


class _ConfigModel(BaseModel):
    # Accept camelCase keys written by older settings.json files
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BackupTypes(_ConfigModel):
    """Which kinds of files a project backs up."""
    claude_md: bool = True
    claude_projects: bool = False
    settings_local: bool = False

    def enabled_labels(self) -> List[str]:
        labels = []
        if self.claude_md:
            labels.append("claude.md")
        if self.claude_projects:
            labels.append("~/.claude/projects")
        if self.settings_local:
            labels.append("settings.local.json")
        return labels


class ProjectConfig(_ConfigModel):
    """Configuration for a single synced project."""
    name: str
    source: str
    destination: Optional[str] = None
    auto_sync: bool = False
    include_git_ignored: bool = False
    backup_types: BackupTypes = Field(default_factory=BackupTypes)
    versioning_strategy: VersioningStrategy = VersioningStrategy.NONE
    keep_versions: int = Field(default=5, ge=0)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('project name must not be empty')
        return v


class HooksConfig(_ConfigModel):
    """Shell commands run around sync operations."""
    post_sync: Optional[str] = None


class SyncConfig(_ConfigModel):
    """Main configuration class."""
    projects: List[ProjectConfig] = Field(default_factory=list)
    sync_destination: str
    history_retention: int = Field(default=30, ge=0)  # days
    hooks: Optional[HooksConfig] = None

    @field_validator('sync_destination')
    @classmethod
    def validate_sync_destination(cls, v):
        if not v.strip():
            raise ValueError('sync_destination must not be empty')
        return v

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "SyncConfig":
        """Load configuration from a YAML (or JSON) file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found at: {config_path}")
        
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}
        
        return cls.model_validate(config_data)
    
    def to_file(self, config_path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        
        data = self.model_dump(mode='json', exclude_none=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False, indent=2, sort_keys=False)
    
    def get_project_by_name(self, name: str) -> Optional[ProjectConfig]:
        """Get project configuration by name."""
        for project in self.projects:
            if project.name == name:
                return project
        return None
    
    def add_project(self, project: ProjectConfig) -> None:
        """Append a project, rejecting duplicate names."""
        if self.get_project_by_name(project.name):
            raise ProjectExistsError(f"Project '{project.name}' already exists")
        self.projects.append(project)
    
    def remove_project(self, name: str) -> ProjectConfig:
        """Remove and return a project by name.
        
        Raises:
            KeyError: If no project has that name
        """
        project = self.get_project_by_name(name)
        if project is None:
            raise KeyError(f"Project '{name}' not found")
        self.projects.remove(project)
        return project


def get_config_path() -> Path:
    """Location of the config file; CCSYNC_CONFIG_PATH overrides the default."""
    override = os.getenv('CCSYNC_CONFIG_PATH')
    if override:
        return Path(override)
    return Path.home() / ".config" / "ccsync" / "config.yaml"


def get_claude_home_path() -> Path:
    override = os.getenv('CCSYNC_CLAUDE_HOME')
    if override:
        return Path(override)
    return Path.home() / ".claude"


def get_claude_projects_path() -> Path:
    return get_claude_home_path() / "projects"


def init_config(config_path: Optional[Union[str, Path]] = None,
                sync_destination: Optional[str] = None) -> SyncConfig:
    """Create a fresh configuration file.
    
    Args:
        config_path: Where to write (defaults to get_config_path())
        sync_destination: Destination root; falls back to CCSYNC_SYNC_DESTINATION
        
    Returns:
        The written configuration
        
    Raises:
        ValueError: If no destination was given by argument or environment
    """
    destination = sync_destination or os.getenv('CCSYNC_SYNC_DESTINATION')
    if not destination:
        raise ValueError(
            "Sync destination must be specified. Use --destination flag or set "
            "CCSYNC_SYNC_DESTINATION environment variable."
        )
    
    config = SyncConfig(projects=[], sync_destination=destination, history_retention=30)
    config.to_file(config_path or get_config_path())
    return config


def load_config(config_path: Optional[Union[str, Path]] = None) -> SyncConfig:
    """Load the configuration from config_path or the default location."""
    return SyncConfig.from_file(config_path or get_config_path())
