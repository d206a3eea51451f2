"""Advisory lock guarding a destination tree against concurrent sync runs."""

import json
import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

LOCK_FILE_NAME = ".ccsync.lock"
DEFAULT_STALE_AFTER = 60 * 60  # seconds


class SyncLockError(RuntimeError):
    """Raised when another sync run holds the destination lock."""


@dataclass
class LockInfo:
    """Contents of a lock file."""
    pid: int
    locked_at_utc: datetime

    def elapsed_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.locked_at_utc).total_seconds()

    def is_expired(self, stale_after: float) -> bool:
        return self.elapsed_seconds() >= stale_after


class DestinationLock:
    """Exclusive lock file in the root of a destination tree.
    
    Usage::
    
        with DestinationLock(destination_root):
            sync_files(...)
    
    A lock older than ``stale_after`` seconds is assumed to belong to a
    crashed run and is replaced.
    """
    
    def __init__(self, root: Union[str, Path], stale_after: float = DEFAULT_STALE_AFTER):
        self.root = Path(root)
        self.path = self.root / LOCK_FILE_NAME
        self.stale_after = stale_after
        self._held = False
    
    def read(self) -> Optional[LockInfo]:
        """Read the current lock holder, or None if unlocked or unreadable."""
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
            return LockInfo(
                pid=int(data['pid']),
                locked_at_utc=datetime.fromisoformat(data['locked_at']),
            )
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Unreadable lock file {self.path}: {e}")
            return None
    
    def _create(self) -> None:
        fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump({
                'pid': os.getpid(),
                'locked_at': datetime.now(timezone.utc).isoformat(),
            }, f)
    
    def _file_age(self) -> Optional[float]:
        try:
            return time.time() - self.path.stat().st_mtime
        except FileNotFoundError:
            return None
    
    def _refuse_if_live(self) -> None:
        """Raise SyncLockError unless the existing lock is stale or gone.
        
        A lock file that cannot be parsed may belong to a run that has created
        it but not yet written it, so its age comes from the file's mtime.
        """
        holder = self.read()
        if holder is not None:
            if not holder.is_expired(self.stale_after):
                raise SyncLockError(
                    f"Destination {self.root} is locked by process {holder.pid} "
                    f"(held for {int(holder.elapsed_seconds())}s)"
                )
            return
        
        age = self._file_age()
        if age is not None and age < self.stale_after:
            raise SyncLockError(
                f"Destination {self.root} is locked by another run "
                f"(unreadable lock file, {int(age)}s old)"
            )
    
    def acquire(self) -> None:
        """Take the lock.
        
        Raises:
            SyncLockError: If a live lock is held by another run
            OSError: If the lock file cannot be created
        """
        self.root.mkdir(parents=True, exist_ok=True)
        try:
            self._create()
        except FileExistsError:
            self._refuse_if_live()
            logger.info(f"Replacing stale lock on {self.root}")
            self.path.unlink(missing_ok=True)
            try:
                self._create()
            except FileExistsError:
                raise SyncLockError(f"Destination {self.root} was locked by another run") from None
        self._held = True
        logger.debug(f"Acquired lock {self.path}")
    
    def release(self) -> None:
        if not self._held:
            return
        self._held = False
        try:
            self.path.unlink()
        except FileNotFoundError:
            logger.warning(f"Lock file {self.path} disappeared before release")
    
    def __enter__(self):
        self.acquire()
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
