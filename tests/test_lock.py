"""Tests for the destination lock."""

import json
import os
import time
from datetime import datetime, timedelta, timezone

import pytest

from ccsync.sync.lock import LOCK_FILE_NAME, DestinationLock, SyncLockError


def test_creates_and_removes_lock_file(tmp_path):
    root = tmp_path / "dest"

    with DestinationLock(root) as lock:
        data = json.loads(lock.path.read_text())
        assert data["pid"] == os.getpid()
        assert lock.read().elapsed_seconds() < 60

    assert not (root / LOCK_FILE_NAME).exists()


def test_second_lock_is_refused(tmp_path):
    with DestinationLock(tmp_path):
        with pytest.raises(SyncLockError, match="is locked by process"):
            DestinationLock(tmp_path).acquire()


def test_released_on_error(tmp_path):
    with pytest.raises(RuntimeError):
        with DestinationLock(tmp_path):
            raise RuntimeError("sync blew up")

    DestinationLock(tmp_path).acquire()


def test_stale_lock_is_replaced(tmp_path):
    stale = datetime.now(timezone.utc) - timedelta(hours=5)
    (tmp_path / LOCK_FILE_NAME).write_text(
        json.dumps({"pid": 99999, "locked_at": stale.isoformat()})
    )

    with DestinationLock(tmp_path, stale_after=3600) as lock:
        assert lock.read().pid == os.getpid()


def test_lock_still_being_written_is_refused(tmp_path):
    lock_file = tmp_path / LOCK_FILE_NAME
    lock_file.write_text("")

    with pytest.raises(SyncLockError, match="unreadable lock file"):
        DestinationLock(tmp_path).acquire()

    assert lock_file.read_text() == ""


def test_old_unreadable_lock_is_replaced(tmp_path):
    lock_file = tmp_path / LOCK_FILE_NAME
    lock_file.write_text("garbage")
    old = time.time() - 2 * 3600
    os.utime(lock_file, (old, old))

    with DestinationLock(tmp_path, stale_after=3600) as lock:
        assert lock.read().pid == os.getpid()


def test_release_without_acquire_is_noop(tmp_path):
    DestinationLock(tmp_path).release()
