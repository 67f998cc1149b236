"""Tests for CLI module."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from typer.testing import CliRunner

from conftest import OPENAI_URL, openai_reply
from hai.cli import app
from hai.storage.history import HistoryStore

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_paths(tmp_path, monkeypatch, config_file, history_file):
    import hai.cli as cli_module

    monkeypatch.setattr(cli_module, "CONFIG_FILE", config_file)
    monkeypatch.setattr(cli_module, "HISTORY_FILE", history_file)
    for name in ("HAI_DEFAULT_MODEL", "HAI_OPENAI_TOKEN", "HAI_ANTHROPIC_TOKEN", "HAI_LOG_LEVEL", "HAI_SKIP_SETUP"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def shell_runner():
    mock_runner = MagicMock()
    mock_runner.return_value.execute = AsyncMock(return_value=0)
    with patch("hai.cli.ShellRunner", mock_runner):
        yield mock_runner


def stored(history_file):
    return list(HistoryStore(history_file, capacity=50).load())


class TestCli:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "hai v" in result.output

    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for flag in ("--yes", "--no-execute", "--model", "--history"):
            assert flag in result.output

    def test_no_execute(self, history_file, respx_mock, shell_runner):
        respx_mock.post(OPENAI_URL).mock(return_value=httpx.Response(200, json=openai_reply("ls -la")))

        result = runner.invoke(app, ["list files", "--no-execute"])

        assert result.exit_code == 0
        assert "Command: ls -la" in result.output
        shell_runner.assert_not_called()
        entries = stored(history_file)
        assert [(e.prompt, e.command, e.executed) for e in entries] == [("list files", "ls -la", False)]

    def test_yes_executes(self, history_file, respx_mock, shell_runner):
        respx_mock.post(OPENAI_URL).mock(return_value=httpx.Response(200, json=openai_reply("df -h")))

        result = runner.invoke(app, ["disk space", "-y"])

        assert result.exit_code == 0
        shell_runner.assert_called_once_with("bash")
        shell_runner.return_value.execute.assert_awaited_once_with("df -h")
        assert stored(history_file)[0].executed is True

    def test_confirm_declined(self, history_file, respx_mock, shell_runner):
        respx_mock.post(OPENAI_URL).mock(return_value=httpx.Response(200, json=openai_reply("rm -rf build")))

        result = runner.invoke(app, ["clean the build"], input="n\n")

        assert result.exit_code == 0
        assert "Looks good?" in result.output
        shell_runner.assert_not_called()
        assert stored(history_file)[0].executed is False

    def test_confirm_accepted(self, history_file, respx_mock, shell_runner):
        respx_mock.post(OPENAI_URL).mock(return_value=httpx.Response(200, json=openai_reply("ls")))

        result = runner.invoke(app, ["list"], input="y\n")

        assert result.exit_code == 0
        shell_runner.return_value.execute.assert_awaited_once_with("ls")
        assert stored(history_file)[0].executed is True

    def test_prompt_from_stdin(self, history_file, respx_mock, shell_runner):
        respx_mock.post(OPENAI_URL).mock(return_value=httpx.Response(200, json=openai_reply("ps aux")))

        result = runner.invoke(app, ["-n"], input="show processes\n")

        assert result.exit_code == 0
        assert stored(history_file)[0].prompt == "show processes"

    def test_empty_prompt(self, history_file):
        result = runner.invoke(app, [], input="")
        assert result.exit_code == 1
        assert "No prompt provided" in result.output
        assert not history_file.exists()

    def test_unknown_model(self, history_file):
        result = runner.invoke(app, ["list files", "-m", "gpt-5"])
        assert result.exit_code == 1
        assert "not found in config" in result.output
        assert "check your configuration file" in result.output
        assert not history_file.exists()

    def test_provider_failure(self, history_file, respx_mock, shell_runner):
        respx_mock.post(OPENAI_URL).mock(return_value=httpx.Response(200, json={"choices": []}))

        result = runner.invoke(app, ["list files", "-y"])

        assert result.exit_code == 1
        assert "communicating with the AI service" in result.output
        shell_runner.assert_not_called()
        assert not history_file.exists()

    def test_execution_failure(self, respx_mock):
        respx_mock.post(OPENAI_URL).mock(return_value=httpx.Response(200, json=openai_reply("false")))
        from hai.errors import CommandExecutionError

        with patch("hai.cli.ShellRunner") as mock_runner:
            mock_runner.return_value.execute = AsyncMock(
                side_effect=CommandExecutionError("Command exited with non-zero status: 1")
            )
            result = runner.invoke(app, ["fail please", "-y"])

        assert result.exit_code == 1
        assert "could not be executed" in result.output

    def test_history_empty(self):
        result = runner.invoke(app, ["--history"])
        assert result.exit_code == 0
        assert "No history yet" in result.output

    def test_history_lists_entries(self, respx_mock, shell_runner):
        respx_mock.post(OPENAI_URL).mock(return_value=httpx.Response(200, json=openai_reply("ls -la")))
        runner.invoke(app, ["list files", "-n"])

        result = runner.invoke(app, ["-H"])

        assert result.exit_code == 0
        assert "list files" in result.output
        assert "ls -la" in result.output

    def test_verbose_logs_config_resolution(self):
        result = runner.invoke(app, ["--history", "--verbose"])
        assert result.exit_code == 0
        assert "Resolved config: model=gpt-4o-mini" in result.output

    def test_quiet_by_default(self):
        result = runner.invoke(app, ["--history"])
        assert result.exit_code == 0
        assert "Resolved config" not in result.output

    def test_corrupt_history(self, history_file):
        history_file.write_text("{nope")
        result = runner.invoke(app, ["--history"])
        assert result.exit_code == 1
        assert "could not be decoded" in result.output

    def test_first_run_creates_default_config(self, tmp_path, monkeypatch):
        import hai.cli as cli_module

        fresh = tmp_path / "fresh" / "config.toml"
        monkeypatch.setattr(cli_module, "CONFIG_FILE", fresh)

        result = runner.invoke(app, ["--history"])

        assert result.exit_code == 0
        assert fresh.exists()
        assert "[models.gpt-4o-mini]" in fresh.read_text()

    def test_setup_wizard(self, tmp_path):
        from hai.cli import run_setup
        from hai.config import load_config

        path = tmp_path / "config.toml"
        with patch("hai.cli.typer.prompt", side_effect=["anthropic", "ant-secret"]):
            run_setup(path)

        config = load_config(env={}, path=path)
        assert config.default_model == "claude-3"
        assert config.models["claude-3"].auth_token == "ant-secret"
