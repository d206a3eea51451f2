"""Append-only log of sync runs and configuration changes."""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

HISTORY_ACTIONS = ("sync", "init", "add-project", "remove-project", "backup-global")


class HistoryError(ValueError):
    """Raised when the history file exists but cannot be parsed."""


@dataclass
class HistoryEntry:
    """One recorded command run."""
    action: str
    success: bool
    timestamp: datetime = field(default_factory=datetime.now)
    project: Optional[str] = None
    files_count: Optional[int] = None
    files_synced: Optional[int] = None
    details: Optional[str] = None

    def __post_init__(self):
        if self.action not in HISTORY_ACTIONS:
            raise ValueError(f"Unknown history action: {self.action}")

    def to_dict(self) -> dict:
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryEntry":
        data = dict(data)
        data['timestamp'] = datetime.fromisoformat(data['timestamp'])
        return cls(**data)


def get_history_path() -> Path:
    """Location of the history file; CCSYNC_HISTORY_PATH overrides the default."""
    override = os.getenv('CCSYNC_HISTORY_PATH')
    if override:
        return Path(override)
    return Path.home() / ".config" / "ccsync" / "history.json"


class HistoryLog:
    """JSON-backed history of ccsync runs."""
    
    def __init__(self, history_file: Optional[Union[str, Path]] = None):
        """Initialize history log.
        
        Args:
            history_file: Path to the JSON history file (defaults to get_history_path())
        """
        self.history_file = Path(history_file) if history_file else get_history_path()
    
    def load(self) -> List[HistoryEntry]:
        """Load all entries; a missing file means no history yet.
        
        Raises:
            HistoryError: If the file is not a valid history document
        """
        try:
            with open(self.history_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as e:
            raise HistoryError(f"Corrupted history file {self.history_file}: {e}") from e
        
        if not isinstance(data, list):
            return []
        
        try:
            return [HistoryEntry.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise HistoryError(f"Invalid entry in history file {self.history_file}: {e}") from e
    
    def _save(self, entries: List[HistoryEntry]) -> None:
        self.history_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.history_file, 'w', encoding='utf-8') as f:
            json.dump([e.to_dict() for e in entries], f, indent=2, ensure_ascii=False)
    
    def add_entry(self, entry: HistoryEntry) -> None:
        """Append an entry, preserving existing ones."""
        entries = self.load()
        entries.append(entry)
        self._save(entries)
    
    def get_entries(self, project: Optional[str] = None,
                    limit: Optional[int] = None) -> List[HistoryEntry]:
        """Entries newest first, optionally filtered by project and truncated."""
        entries = self.load()
        if project:
            entries = [e for e in entries if e.project == project]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        if limit:
            entries = entries[:limit]
        return entries
    
    def cleanup(self, retention_days: int) -> int:
        """Drop entries older than retention_days.
        
        Returns:
            Number of entries removed
        """
        entries = self.load()
        cutoff = datetime.now() - timedelta(days=retention_days)
        kept = [e for e in entries if e.timestamp > cutoff]
        self._save(kept)
        removed = len(entries) - len(kept)
        if removed:
            logger.debug(f"Removed {removed} history entries older than {retention_days} days")
        return removed
