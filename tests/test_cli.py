"""
Tests for CLI commands — global options, config check, and the helm group.

helm itself is never launched: ``mock_run`` stands in for subprocess.run.
"""

import json
import subprocess
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from helmwrap.main import cli


@pytest.fixture(autouse=True)
def no_config(tmp_path: Path, monkeypatch):
    """Run every CLI test from an empty directory (no helmwrap.yml)."""
    monkeypatch.chdir(tmp_path)


def invoke(*args: str):
    return CliRunner().invoke(cli, list(args))


def fast_retry_config(tmp_path: Path) -> Path:
    path = tmp_path / "fast.yml"
    path.write_text(textwrap.dedent("""\
        retry:
          timeout: 5
          initial_interval: 0.01
          max_interval: 0.02
    """))
    return path


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        result = invoke("--help")
        assert result.exit_code == 0
        assert "helm" in result.output

    def test_version(self):
        result = invoke("--version")
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_helm_help_lists_commands(self):
        result = invoke("helm", "--help")
        assert result.exit_code == 0
        for name in ("repo", "dep", "install", "upgrade", "status", "find-chart", "exec"):
            assert name in result.output


class TestConfigCheck:
    def test_defaults(self):
        result = invoke("config", "check")
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output
        assert "(defaults)" in result.output

    def test_json(self, tmp_path: Path):
        config = tmp_path / "helmwrap.yml"
        config.write_text("helm:\n  binary: helm3\n")
        result = invoke("--config", str(config), "config", "check", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["path"] == str(config)
        assert data["settings"]["helm"]["binary"] == "helm3"

    def test_invalid(self, tmp_path: Path):
        config = tmp_path / "helmwrap.yml"
        config.write_text("helm: [oops\n")
        result = invoke("--config", str(config), "config", "check", "--json")
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["valid"] is False
        assert "Invalid YAML" in data["error"]


# ═══════════════════════════════════════════════════════════════════
#  HELM GROUP
# ═══════════════════════════════════════════════════════════════════


class TestRepoCommands:
    def test_list_json(self, mock_run, helm_result):
        mock_run.return_value = helm_result("NAME\tURL\n\nstable\thttps://charts.example.com\n")
        result = invoke("helm", "repo", "list", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output) == {"stable": "https://charts.example.com"}
        assert mock_run.call_args[0][0] == ["helm", "repo", "list"]

    def test_list_text(self, mock_run, helm_result):
        mock_run.return_value = helm_result("NAME\tURL\n\nstable\thttps://charts.example.com\n")
        result = invoke("helm", "repo", "list")
        assert result.exit_code == 0
        assert "stable" in result.output
        assert "Repositories (1)" in result.output

    def test_list_empty(self, mock_run):
        result = invoke("helm", "repo", "list")
        assert result.exit_code == 0
        assert "No repositories" in result.output

    def test_add(self, mock_run):
        result = invoke("helm", "repo", "add", "jx", "https://jx.example.com")
        assert result.exit_code == 0
        assert mock_run.call_args[0][0] == ["helm", "repo", "add", "jx", "https://jx.example.com"]

    def test_missing_exit_codes(self, mock_run, helm_result):
        mock_run.return_value = helm_result("NAME\tURL\n\njx\thttps://jx.example.com/charts\n")
        present = invoke("helm", "repo", "missing", "https://jx.example.com", "--json")
        absent = invoke("helm", "repo", "missing", "https://other.example.com", "--json")
        assert present.exit_code == 0
        assert json.loads(present.output)["missing"] is False
        assert absent.exit_code == 1
        assert json.loads(absent.output)["missing"] is True

    def test_quiet_still_reads_repositories(self, mock_run, helm_result):
        mock_run.return_value = helm_result("NAME\tURL\n\njx\thttps://jx.example.com/charts\n")
        result = invoke("--quiet", "helm", "repo", "missing", "https://jx.example.com", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output)["missing"] is False

    def test_quiet_discards_output_of_plain_commands(self, mock_run):
        result = invoke("--quiet", "helm", "repo", "update")
        assert result.exit_code == 0
        assert mock_run.call_args[1]["stdout"] == subprocess.DEVNULL

    def test_failure_exits_1(self, mock_run, helm_result):
        mock_run.return_value = helm_result("Error: no repositories to show", returncode=1)
        result = invoke("helm", "repo", "update")
        assert result.exit_code == 1
        assert "failed to run 'helm repo update'" in result.output

    def test_binary_override(self, mock_run):
        result = invoke("helm", "--binary", "/opt/helm3", "repo", "update")
        assert result.exit_code == 0
        assert mock_run.call_args[0][0][0] == "/opt/helm3"


class TestDepCommands:
    def test_build_with_clean_lock(self, mock_run, tmp_path: Path):
        (tmp_path / "requirements.lock").write_text("x")
        result = invoke("helm", "--cwd", str(tmp_path), "dep", "build", "--clean-lock")
        assert result.exit_code == 0
        assert not (tmp_path / "requirements.lock").exists()
        assert mock_run.call_args[0][0] == ["helm", "dependency", "build"]
        assert mock_run.call_args[1]["cwd"] == str(tmp_path)


class TestReleaseCommands:
    def test_install(self, mock_run):
        result = invoke(
            "helm", "install", "stable/redis",
            "--name", "cache", "-n", "apps", "--version", "3.1.0",
            "--set", "a=1", "-f", "prod.yaml",
        )
        assert result.exit_code == 0
        assert mock_run.call_args[0][0] == [
            "helm", "install", "--name", "cache", "--namespace", "apps", "stable/redis",
            "--version", "3.1.0", "--set", "a=1", "--values", "prod.yaml",
        ]

    def test_upgrade(self, mock_run):
        result = invoke("helm", "upgrade", "cache", "stable/redis", "-n", "apps", "--install", "--wait")
        assert result.exit_code == 0
        assert mock_run.call_args[0][0] == [
            "helm", "upgrade", "--namespace", "apps", "--install", "--wait", "cache", "stable/redis",
        ]

    def test_status_json(self, mock_run, helm_result):
        mock_run.return_value = helm_result(
            "NAME\tREVISION\tUPDATED\tSTATUS\tCHART\n\nweb\t1\tnow\tDEPLOYED\tweb-0.1.0\n"
        )
        result = invoke("helm", "status", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output) == {"web": "DEPLOYED"}

    def test_status_text(self, mock_run, helm_result):
        mock_run.return_value = helm_result(
            "NAME\tREVISION\tUPDATED\tSTATUS\n\nweb\t1\tnow\tDEPLOYED\ndb\t2\tnow\tFAILED\n"
        )
        result = invoke("helm", "status")
        assert result.exit_code == 0
        assert "Releases (2)" in result.output
        assert "FAILED" in result.output

    def test_status_single_release(self, mock_run, helm_result):
        mock_run.return_value = helm_result("STATUS: DEPLOYED\n")
        result = invoke("helm", "status", "web")
        assert result.exit_code == 0
        assert "STATUS: DEPLOYED" in result.output
        assert mock_run.call_args[0][0] == ["helm", "status", "web"]

    def test_status_failure_json(self, mock_run, helm_result):
        mock_run.return_value = helm_result("Error: could not find tiller", returncode=1)
        result = invoke("helm", "status", "--json")
        assert result.exit_code == 1
        assert "failed to list the installed chart releases" in json.loads(result.output)["error"]


class TestChartCommands:
    def test_search_json(self, mock_run, helm_result):
        mock_run.return_value = helm_result("NAME\tCHART VERSION\n\nredis\t3.1.0\nredis\t3.0.0\n")
        result = invoke("helm", "search", "redis", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output) == {"chart": "redis", "versions": ["3.1.0", "3.0.0"]}

    def test_find_chart(self, chart_dir, tmp_path: Path):
        chart_dir("app")
        result = invoke("helm", "--cwd", str(tmp_path), "find-chart", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output) == {"chart": str(tmp_path / "app" / "Chart.yaml")}

    def test_find_chart_not_found(self, tmp_path: Path):
        result = invoke("helm", "find-chart")
        assert result.exit_code == 1
        assert "no Chart.yaml file found" in result.output

    def test_version(self, mock_run, helm_result):
        mock_run.return_value = helm_result("Client: v2.16.1\n")
        result = invoke("helm", "version", "--tls")
        assert result.exit_code == 0
        assert "v2.16.1" in result.output
        assert mock_run.call_args[0][0] == ["helm", "version", "--short", "--tls"]


class TestExec:
    def test_passthrough_args(self, mock_run, helm_result):
        mock_run.return_value = helm_result("ok\n")
        result = invoke("helm", "exec", "--", "repo", "update", "--debug")
        assert result.exit_code == 0
        assert "ok" in result.output
        assert mock_run.call_args[0][0] == ["helm", "repo", "update", "--debug"]

    def test_retries_until_success(self, mock_run, helm_result, tmp_path: Path):
        mock_run.side_effect = [helm_result("flaky", returncode=1), helm_result("Update Complete.")]
        config = fast_retry_config(tmp_path)
        result = invoke("--config", str(config), "helm", "exec", "--", "repo", "update")
        assert result.exit_code == 0
        assert "Update Complete." in result.output
        assert mock_run.call_count == 2

    def test_no_retry_failure(self, mock_run, helm_result):
        mock_run.return_value = helm_result("boom", returncode=1)
        result = invoke("helm", "exec", "--no-retry", "--", "repo", "update")
        assert result.exit_code == 1
        assert "attempts: 1" in result.output
        assert mock_run.call_count == 1

    def test_default_args_from_config(self, mock_run, tmp_path: Path):
        config = tmp_path / "helmwrap.yml"
        config.write_text("helm:\n  args:\n    - '--kube-context prod'\n")
        result = invoke("helm", "exec", "--no-retry", "--", "list")
        assert result.exit_code == 0
        assert mock_run.call_args[0][0] == ["helm", "--kube-context", "prod", "list"]
