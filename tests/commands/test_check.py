"""Tests for the check CLI command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from folioctl.cli import cli
from tests.conftest import write


@pytest.mark.usefixtures("_isolated_site")
class TestCheckCommand:
    def test_check_healthy(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["check"])
        assert result.exit_code == 0
        assert "No issues found" in result.stdout

    def test_check_json_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "check"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["ok"] is True
        assert data["op"] == "check"
        assert data["data"]["healthy"] is True
        assert data["data"]["count"] == 0

    def test_check_reports_issues(self, cli_runner: CliRunner, site_root: Path) -> None:
        write(
            site_root,
            "_pages/portfolio.md",
            "---\nlayout: page\ntitle: P\npermalink: /portfolio/\n---\n[x](/gone/) [a](/about/)\n",
        )
        result = cli_runner.invoke(cli, ["check"])
        assert result.exit_code == 0
        assert "Broken link '/gone/' (line 1)" in result.stdout
        assert "1 errors, 0 warnings" in result.stdout

    def test_strict_fails_on_errors(self, cli_runner: CliRunner, site_root: Path) -> None:
        write(site_root, "_pages/broken.md", "---\ntitle: [oops\n---\n")
        result = cli_runner.invoke(cli, ["check", "--strict"])
        assert result.exit_code == 1

    def test_strict_passes_with_warnings_only(
        self, cli_runner: CliRunner, site_root: Path
    ) -> None:
        write(
            site_root,
            "_pages/lonely.md",
            "---\nlayout: page\ntitle: L\npermalink: /lonely/\n---\n",
        )
        result = cli_runner.invoke(cli, ["check", "--strict"])
        assert result.exit_code == 0
        assert "graph_health" in result.stdout

    def test_errors_only(self, cli_runner: CliRunner, site_root: Path) -> None:
        write(
            site_root,
            "_pages/lonely.md",
            "---\nlayout: page\ntitle: L\npermalink: /lonely/\n---\n",
        )
        result = cli_runner.invoke(cli, ["--json", "check", "--errors-only"])
        assert json.loads(result.stdout)["data"]["count"] == 0

    def test_min_severity_choice(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["check", "--min-severity", "info"])
        assert result.exit_code == 2

    def test_quiet_lists_issues(self, cli_runner: CliRunner, site_root: Path) -> None:
        write(site_root, "notes.md", "# Notes\n[a](/about/)\n")
        result = cli_runner.invoke(cli, ["-q", "check"])
        assert result.exit_code == 0
        assert "notes.md: warning: No front-matter" in result.stdout

    def test_check_fix(self, cli_runner: CliRunner, site_root: Path) -> None:
        path = write(
            site_root,
            "_pages/cv.md",
            "---\nlayout: page\ntitle: CV\npermalink: cv/\n---\n",
        )
        result = cli_runner.invoke(cli, ["--json", "check", "--fix"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["op"] == "fix"
        assert data["data"]["count"] == 1
        assert "permalink: /cv/" in path.read_text(encoding="utf-8")

    def test_check_fix_aggressive_no_prompt(self, cli_runner: CliRunner, site_root: Path) -> None:
        write(site_root, "_pages/t.md", "---\ntitle: T\nlayout: page\npermalink: /t/\n---\n")
        result = cli_runner.invoke(
            cli, ["--json", "--no-interact", "check", "--fix", "--level", "aggressive"]
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["level"] == "aggressive"

    def test_verbose_shows_telemetry(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-v", "check"])
        assert result.exit_code == 0
        assert "CheckService.check" in result.stdout
