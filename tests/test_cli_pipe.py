"""Tests for the pipekit CLI."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from pipekit import __version__
from pipekit.cli import app
from pipekit.event_client import EventClient
from pipekit.pipes import NonZeroExitError, RuntimeNotFoundError


runner = CliRunner()


@pytest.fixture
def workspace(monkeypatch, tmp_path):
    """Isolated workspace and config."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("PIPEKIT_CONFIG", raising=False)
    root = tmp_path / "workspace"
    monkeypatch.setenv("PIPEKIT_DIR", str(root))
    return root


def _local_pipe(path):
    path.mkdir(parents=True)
    (path / "pipe.ts").write_text("console.log('hi')")
    return path


class TestVersion:
    def test_version(self, workspace):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestGlobalOptions:
    def test_missing_config_file(self, workspace, tmp_path):
        result = runner.invoke(app, ["--config", str(tmp_path / "nope.yml"), "version"])

        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestPipeDownload:
    def test_download_local(self, workspace, tmp_path):
        src = _local_pipe(tmp_path / "src" / "hello")

        result = runner.invoke(app, ["pipe", "download", str(src)])

        assert result.exit_code == 0
        assert (workspace / "pipes" / "hello" / "pipe.ts").exists()
        assert "Pipe downloaded to" in result.output

    def test_download_invalid(self, workspace, tmp_path):
        result = runner.invoke(app, ["pipe", "download", str(tmp_path / "missing")])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_download_passes_config_token(self, workspace, tmp_path):
        config = tmp_path / "config.yml"
        config.write_text("github_token: from-config\n")

        with patch("pipekit.commands.pipe.download_pipe") as download:
            download.return_value = workspace / "pipes" / "x"
            result = runner.invoke(
                app,
                ["--config", str(config), "pipe", "download", "https://github.com/o/r/tree/main/x"],
            )

        assert result.exit_code == 0
        assert download.call_args.kwargs["token"] == "from-config"


class TestPipeRun:
    def test_run_success(self, workspace):
        with patch("pipekit.commands.pipe.run_pipe", return_value=0) as run:
            result = runner.invoke(app, ["pipe", "run", "hello"])

        assert result.exit_code == 0
        assert run.call_args[0] == ("hello", workspace)
        assert run.call_args.kwargs["runtime"] is None

    def test_run_forwards_exit_code(self, workspace):
        with patch("pipekit.commands.pipe.run_pipe", side_effect=NonZeroExitError(2)):
            result = runner.invoke(app, ["pipe", "run", "hello"])

        assert result.exit_code == 2
        assert "status: 2" in result.output

    def test_run_signal_exit_maps_to_one(self, workspace):
        with patch("pipekit.commands.pipe.run_pipe", side_effect=NonZeroExitError(-15)):
            result = runner.invoke(app, ["pipe", "run", "hello"])

        assert result.exit_code == 1

    def test_run_missing_runtime(self, workspace):
        with patch(
            "pipekit.commands.pipe.run_pipe",
            side_effect=RuntimeNotFoundError("deno not found in system path"),
        ):
            result = runner.invoke(app, ["pipe", "run", "hello"])

        assert result.exit_code == 1
        assert "deno not found" in result.output

    def test_run_without_entry_file(self, workspace):
        (workspace / "pipes" / "empty").mkdir(parents=True)

        result = runner.invoke(app, ["pipe", "run", "empty"])

        assert result.exit_code == 1
        assert "No pipe.js/pipe.ts" in result.output


class TestPipeList:
    def test_empty(self, workspace):
        result = runner.invoke(app, ["pipe", "list"])

        assert result.exit_code == 0
        assert "No pipes found" in result.output

    def test_lists(self, workspace):
        _local_pipe(workspace / "pipes" / "hello")

        result = runner.invoke(app, ["pipe", "list"])

        assert result.exit_code == 0
        assert "hello" in result.output
        assert "pipe.ts" in result.output


class TestPipeRuntime:
    def test_found(self, workspace):
        with patch("pipekit.commands.pipe.find_deno", return_value="/usr/bin/deno"):
            result = runner.invoke(app, ["pipe", "runtime"])

        assert result.exit_code == 0
        assert "/usr/bin/deno" in result.output

    def test_not_found(self, workspace):
        with patch("pipekit.commands.pipe.find_deno", return_value=None):
            result = runner.invoke(app, ["pipe", "runtime"])

        assert result.exit_code == 1
        assert "deno not found" in result.output


class TestPipeHistory:
    def test_no_runs(self, workspace):
        result = runner.invoke(app, ["pipe", "history", "hello"])

        assert result.exit_code == 0
        assert "No runs recorded for hello" in result.output

    def test_shows_recent_runs(self, workspace):
        events = EventClient.for_workspace(workspace)
        events.start_run("hello", "pipe.ts", "deno").completed(0)
        events.start_run("hello", "pipe.ts", "deno").failed("pipe exited with status: 4", exit_code=4)
        events.start_run("other", "pipe.ts", "deno").completed(0)

        result = runner.invoke(app, ["pipe", "history", "hello", "--limit", "1"])

        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert len(lines) == 1
        assert "failed" in lines[0]
        assert "exit=4" in lines[0]


class TestConfigCommands:
    """Tests for config show / validate."""

    def test_validate_ok(self, workspace, tmp_path):
        deno = tmp_path / "deno"
        deno.write_text("")
        config = tmp_path / "config.yml"
        config.write_text(f"runtime: {deno}\n")

        result = runner.invoke(app, ["--config", str(config), "config", "validate"])

        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_validate_reports_problems(self, workspace, tmp_path):
        config = tmp_path / "config.yml"
        config.write_text("runtime: /no/such/deno\ncolour: blue\n")

        result = runner.invoke(app, ["--config", str(config), "config", "validate"])

        assert result.exit_code == 1
        assert "unknown key 'colour'" in result.output
        assert "/no/such/deno' is not a file" in result.output

    def test_validate_workspace_is_file(self, workspace, tmp_path):
        workspace.parent.mkdir(parents=True, exist_ok=True)
        workspace.write_text("")

        result = runner.invoke(app, ["config", "validate"])

        assert result.exit_code == 1
        assert "is not a directory" in result.output

    def test_show_masks_token(self, workspace, tmp_path):
        config = tmp_path / "config.yml"
        config.write_text("runtime: /opt/deno\ngithub_token: abc123xyz\n")

        result = runner.invoke(app, ["--config", str(config), "config", "show"])

        assert result.exit_code == 0
        assert "runtime: /opt/deno" in result.output
        assert f"workspace: {workspace}" in result.output
        assert f"config_file: {config}" in result.output
        assert "abc123xyz" not in result.output
        assert "'***'" in result.output
