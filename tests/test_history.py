"""Tests for the JSON history log."""

import json
from datetime import datetime, timedelta

import pytest

from ccsync.sync.history import HistoryEntry, HistoryError, HistoryLog, get_history_path


@pytest.fixture
def log(tmp_path):
    return HistoryLog(tmp_path / "nested" / "history.json")


def _entry(days_ago=0, project=None, action="sync", **kwargs):
    return HistoryEntry(
        action=action,
        success=True,
        project=project,
        timestamp=datetime.now() - timedelta(days=days_ago),
        **kwargs,
    )


def test_default_path_respects_environment(ccsync_env):
    assert get_history_path() == ccsync_env["history"]
    assert HistoryLog().history_file == ccsync_env["history"]


def test_unknown_action_rejected():
    with pytest.raises(ValueError):
        HistoryEntry(action="explode", success=True)


def test_missing_file_is_empty(log):
    assert log.load() == []


def test_corrupted_file_raises(log):
    log.history_file.parent.mkdir(parents=True)
    log.history_file.write_text("{not json")

    with pytest.raises(HistoryError):
        log.load()


def test_add_entry_creates_directory(log):
    log.add_entry(_entry(project="web", files_count=3))

    data = json.loads(log.history_file.read_text())
    assert len(data) == 1
    assert data[0]["project"] == "web"
    assert data[0]["files_count"] == 3
    assert "details" not in data[0]


def test_add_entry_preserves_existing(log):
    log.add_entry(_entry(project="a"))
    log.add_entry(_entry(project="b", action="add-project"))

    entries = log.load()
    assert [e.project for e in entries] == ["a", "b"]
    assert entries[1].action == "add-project"
    assert isinstance(entries[0].timestamp, datetime)


class TestGetEntries:

    @pytest.fixture(autouse=True)
    def populated(self, log):
        log.add_entry(_entry(days_ago=3, project="a"))
        log.add_entry(_entry(days_ago=1, project="b"))
        log.add_entry(_entry(days_ago=2, project="a"))
        log.add_entry(_entry(days_ago=0, project="b"))

    def test_sorted_newest_first(self, log):
        entries = log.get_entries()
        assert [e.timestamp for e in entries] == sorted((e.timestamp for e in entries), reverse=True)

    def test_filter_by_project(self, log):
        assert {e.project for e in log.get_entries("a")} == {"a"}
        assert len(log.get_entries("a")) == 2

    def test_limit(self, log):
        assert len(log.get_entries(limit=3)) == 3

    def test_filter_and_limit(self, log):
        (entry,) = log.get_entries("a", 1)
        assert entry.project == "a"
        assert (datetime.now() - entry.timestamp).days == 2


def test_cleanup_removes_old_entries(log):
    log.add_entry(_entry(days_ago=40))
    log.add_entry(_entry(days_ago=31))
    log.add_entry(_entry(days_ago=5))

    removed = log.cleanup(30)

    assert removed == 2
    assert len(log.load()) == 1


def test_cleanup_keeps_recent_entries(log):
    log.add_entry(_entry(days_ago=1))
    log.add_entry(_entry(days_ago=2))

    assert log.cleanup(30) == 0
    assert len(log.load()) == 2
