"""Tests for the root folioctl CLI."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from folioctl import __version__
from folioctl.cli import cli


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "folioctl" in result.stdout
    for command in ("check", "query", "new", "export"):
        assert command in result.stdout


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_cli_no_args(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.stdout


# --- Global flags ---


@pytest.mark.parametrize("flag", ["--json", "-q", "-v", "--log-json", "--no-interact"])
def test_global_flag_accepted(cli_runner: CliRunner, flag: str) -> None:
    result = cli_runner.invoke(cli, [flag, "--version"])
    assert result.exit_code == 0


def test_config_option_accepted(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["-c", "/nonexistent/folioctl.toml", "--version"])
    assert result.exit_code == 0


@pytest.mark.usefixtures("_isolated_site")
class TestGlobalBehaviour:
    def test_verbose_json_includes_telemetry(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-v", "--json", "query", "list"])
        assert result.exit_code == 0
        meta = json.loads(result.stdout)["meta"]
        assert meta["telemetry"]["name"] == "QueryService.list_items"

    def test_json_without_verbose_has_no_meta(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "query", "list"])
        assert json.loads(result.stdout)["meta"] is None

    def test_config_file_applies(self, cli_runner: CliRunner, site_root: Path) -> None:
        cfg = site_root / "alt.toml"
        cfg.write_text('[export]\ngraph_format = "dot"\n', encoding="utf-8")
        result = cli_runner.invoke(cli, ["-c", str(cfg), "export", "graph"])
        assert result.exit_code == 0
        assert result.stdout.startswith("digraph site {")
        assert '"/about"' in result.stdout
