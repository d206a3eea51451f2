"""Shared fixtures for ccsync tests."""

import logging
from pathlib import Path

import pytest


@pytest.fixture
def write_file():
    """Create a file (and its parents) with the given text content."""
    def _write(path: Path, content: str = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def ccsync_env(tmp_path, monkeypatch):
    """Point every ccsync path override at a temporary directory."""
    home = tmp_path / "home"
    paths = {
        "config": home / ".config" / "ccsync" / "config.yaml",
        "history": home / ".config" / "ccsync" / "history.json",
        "claude_home": home / ".claude",
    }
    monkeypatch.setenv("CCSYNC_CONFIG_PATH", str(paths["config"]))
    monkeypatch.setenv("CCSYNC_HISTORY_PATH", str(paths["history"]))
    monkeypatch.setenv("CCSYNC_CLAUDE_HOME", str(paths["claude_home"]))
    monkeypatch.delenv("CCSYNC_SYNC_DESTINATION", raising=False)
    return paths


@pytest.fixture(autouse=True)
def reset_ccsync_logger():
    """Drop handlers the CLI attaches so later tests never log to a closed stream."""
    yield
    logger = logging.getLogger("ccsync")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
