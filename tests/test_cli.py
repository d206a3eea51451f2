"""Tests for the ccsync command-line interface."""

import shutil

import pytest
from click.testing import CliRunner

import ccsync.cli as cli_module
from ccsync import __version__
from ccsync.cli import cli
from ccsync.config.settings import HooksConfig, VersioningStrategy, get_config_path, load_config
from ccsync.sync.history import HistoryLog


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def configured(ccsync_env, runner, tmp_path):
    """An initialized config with a destination under tmp_path."""
    dest = tmp_path / "backup"
    result = runner.invoke(cli, ["init", "--destination", str(dest)])
    assert result.exit_code == 0, result.output
    return dest


@pytest.fixture
def project_source(tmp_path, write_file):
    source = tmp_path / "web"
    write_file(source / "CLAUDE.md", "# Web")
    write_file(source / "docs" / "claude.md", "# Docs")
    return source


def _add_project(runner, source, *extra):
    return runner.invoke(cli, ["add-project", "--name", "web", "--source", str(source), *extra])


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_commands(runner):
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    for command in ("init", "add-project", "sync", "sync-all", "status", "history", "backup-global"):
        assert command in result.output


def test_unknown_command(runner):
    assert runner.invoke(cli, ["frobnicate"]).exit_code != 0


class TestInit:

    def test_requires_destination(self, ccsync_env, runner):
        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 1
        assert "Sync destination must be specified" in result.output

    def test_writes_config_and_history(self, ccsync_env, configured):
        assert load_config().sync_destination == str(configured.resolve())
        assert [e.action for e in HistoryLog().load()] == ["init"]

    def test_declining_overwrite_keeps_config(self, configured, runner, tmp_path):
        result = runner.invoke(cli, ["init", "-d", str(tmp_path / "other")], input="n\n")

        assert result.exit_code == 0
        assert load_config().sync_destination == str(configured.resolve())


class TestAddProject:

    def test_requires_name_and_source(self, configured, runner):
        assert runner.invoke(cli, ["add-project"]).exit_code == 2
        assert runner.invoke(cli, ["add-project", "--name", "web"]).exit_code == 2

    def test_adds_project(self, configured, runner, project_source):
        result = _add_project(runner, project_source, "--versioning", "incremental",
                              "--keep-versions", "3", "--backup-settings-local")

        assert result.exit_code == 0, result.output
        project = load_config().get_project_by_name("web")
        assert project.source == str(project_source.resolve())
        assert project.versioning_strategy is VersioningStrategy.INCREMENTAL
        assert project.keep_versions == 3
        assert project.backup_types.settings_local

    def test_rejects_duplicate(self, configured, runner, project_source):
        _add_project(runner, project_source)

        result = _add_project(runner, project_source)

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_rejects_missing_source(self, configured, runner, tmp_path):
        result = _add_project(runner, tmp_path / "nowhere")

        assert result.exit_code == 1
        assert "not a directory" in result.output

    def test_rejects_bad_versioning(self, configured, runner, project_source):
        assert _add_project(runner, project_source, "--versioning", "git").exit_code == 2
        assert _add_project(runner, project_source, "--keep-versions=-1").exit_code == 2

    def test_remove_project(self, configured, runner, project_source):
        _add_project(runner, project_source)

        result = runner.invoke(cli, ["remove-project", "web"])

        assert result.exit_code == 0
        assert load_config().projects == []
        assert runner.invoke(cli, ["remove-project", "web"]).exit_code == 1


class TestSync:

    def test_sync_all_projects(self, configured, runner, project_source):
        _add_project(runner, project_source)

        result = runner.invoke(cli, ["sync-all"])

        assert result.exit_code == 0, result.output
        assert "Synced 2 files" in result.output
        assert (configured / "web" / "docs" / "claude.md").read_text() == "# Docs"
        last = HistoryLog().get_entries("web", 1)[0]
        assert last.action == "sync"
        assert last.files_count == 2
        assert last.success

    def test_resync_is_idempotent(self, configured, runner, project_source):
        _add_project(runner, project_source, "--versioning", "timestamp")
        runner.invoke(cli, ["sync", "web"])

        result = runner.invoke(cli, ["sync", "web"])

        assert result.exit_code == 0
        assert "Synced 0 files (2 unchanged)" in result.output

    def test_unknown_project(self, configured, runner):
        result = runner.invoke(cli, ["sync", "ghost"])

        assert result.exit_code == 1
        assert "Project 'ghost' not found" in result.output

    def test_missing_source_is_reported(self, configured, runner, project_source):
        _add_project(runner, project_source)
        shutil.rmtree(project_source)

        result = runner.invoke(cli, ["sync"])

        assert result.exit_code == 1
        assert "Directory does not exist" in result.output
        assert not HistoryLog().get_entries("web", 1)[0].success

    def test_no_projects(self, configured, runner):
        result = runner.invoke(cli, ["sync"])

        assert result.exit_code == 0
        assert "No projects configured" in result.output

    def test_post_sync_hook_failure(self, configured, runner, project_source):
        _add_project(runner, project_source)
        config = load_config()
        config.hooks = HooksConfig(post_sync="exit 3")
        config.to_file(get_config_path())

        result = runner.invoke(cli, ["sync"])

        assert result.exit_code == 1
        assert "Post-sync hook failed" in result.output


def test_status_shows_projects(configured, runner, project_source):
    _add_project(runner, project_source, "--versioning", "timestamp")

    result = runner.invoke(cli, ["status"])

    assert result.exit_code == 0, result.output
    assert "web" in result.output
    assert "History retention: 30 days" in result.output


def test_history_empty(ccsync_env, runner):
    result = runner.invoke(cli, ["history"])

    assert result.exit_code == 0
    assert "No history entries found" in result.output


def test_history_lists_entries(configured, runner, project_source):
    _add_project(runner, project_source)

    result = runner.invoke(cli, ["history", "--limit", "5"])

    assert result.exit_code == 0
    assert "add-project" in result.output


class TestBackupGlobal:

    @pytest.fixture
    def claude_projects(self, ccsync_env, write_file):
        projects = ccsync_env["claude_home"] / "projects"
        write_file(projects / "p1" / "session.jsonl", "{}")
        return projects

    def test_dry_run_copies_nothing(self, configured, runner, claude_projects):
        result = runner.invoke(cli, ["backup-global", "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "p1/session.jsonl" in result.output
        assert not (configured / "global-claude-backup").exists()

    def test_dry_run_tolerates_vanished_file(self, configured, runner, claude_projects,
                                             monkeypatch):
        present = claude_projects / "p1" / "session.jsonl"
        vanished = claude_projects / "p1" / "gone.jsonl"
        monkeypatch.setattr(cli_module, "scan_claude_projects", lambda path: [vanished, present])

        result = runner.invoke(cli, ["backup-global", "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "p1/gone.jsonl (unreadable)" in result.output
        assert "p1/session.jsonl" in result.output
        assert "Total size: 2.0 B" in result.output

    def test_backup(self, configured, runner, claude_projects):
        result = runner.invoke(cli, ["backup-global", "--versioning", "incremental"])

        assert result.exit_code == 0, result.output
        assert (configured / "global-claude-backup" / "p1" / "session.jsonl").exists()
        entry = HistoryLog().get_entries("global", 1)[0]
        assert entry.action == "backup-global"
        assert entry.files_synced == 1

    def test_missing_projects_directory(self, configured, runner):
        result = runner.invoke(cli, ["backup-global"])

        assert result.exit_code == 1
        assert "Claude projects directory does not exist" in result.output


def test_versions_command(runner, tmp_path, write_file):
    write_file(tmp_path / "note.md", "now")
    write_file(tmp_path / "note.20240101_120000.md", "then")

    result = runner.invoke(cli, ["versions", str(tmp_path / "note.md")])

    assert result.exit_code == 0, result.output
    assert "20240101_120000" in result.output


def test_versions_none_found(runner, tmp_path):
    result = runner.invoke(cli, ["versions", str(tmp_path / "note.md")])

    assert result.exit_code == 0
    assert "No versions found" in result.output


def test_log_file_receives_debug_records(configured, runner, project_source, tmp_path):
    _add_project(runner, project_source)
    log_file = tmp_path / "logs" / "ccsync.log"

    result = runner.invoke(cli, ["--log-file", str(log_file), "sync", "web"])

    assert result.exit_code == 0, result.output
    text = log_file.read_text(encoding="utf-8")
    assert "DEBUG" in text
    assert "Synced" in text
