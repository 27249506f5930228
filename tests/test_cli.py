"""Tests for the nbpublish CLI commands."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from conftest import write_notebook
from nbpublish.cli import app

runner = CliRunner()


@pytest.fixture
def config_file(make_config, project) -> Path:
    path = project / "nbpublish.yaml"
    path.write_text(yaml.safe_dump(make_config().model_dump()))
    return path


def _invoke(config_file: Path, *args: str):
    return runner.invoke(app, ["--config", str(config_file), *args])


# ---------------------------------------------------------------------------
# nbpublish build
# ---------------------------------------------------------------------------


class TestBuildCommand:
    def test_build_success(self, config_file, notebooks, project):
        result = _invoke(config_file, "build")

        assert result.exit_code == 0, result.output
        assert "particle.ipynb" in result.output
        assert "Build Complete" in result.output
        assert (project / "site" / "examples" / "spin.md").exists()

    def test_build_failure_exits_nonzero(self, config_file, notebooks, project):
        write_notebook(notebooks / "q_broken.ipynb", ("code", "raise ValueError()"))
        result = _invoke(config_file, "build")

        assert result.exit_code == 1
        assert "FAIL" in result.output
        assert not (project / "markdown" / "spin.md").exists()

    def test_continue_on_error_flag(self, config_file, notebooks, project):
        write_notebook(notebooks / "q_broken.ipynb", ("code", "raise ValueError()"))
        result = _invoke(config_file, "build", "--continue-on-error")

        assert result.exit_code == 1
        assert (project / "markdown" / "spin.md").exists()

    def test_no_publish_flag(self, config_file, notebooks, project):
        result = _invoke(config_file, "build", "--no-publish")

        assert result.exit_code == 0, result.output
        assert (project / "markdown" / "spin.md").exists()
        assert not (project / "site" / "examples").exists()

    def test_dry_run_lists_commands(self, config_file, notebooks, project):
        result = _invoke(config_file, "build", "--dry-run")

        assert result.exit_code == 0, result.output
        assert "dry run" in result.output
        assert "--to=script" in result.output
        assert not (project / "scripts").exists()

    def test_missing_source_dir(self, config_file, project):
        (project / "notebooks").rmdir()
        result = _invoke(config_file, "build")
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_invalid_config_file(self, project):
        bad = project / "bad.yaml"
        bad.write_text("build:\n  on_error: sometimes\n")
        result = runner.invoke(app, ["--config", str(bad), "build"])
        assert result.exit_code == 1
        assert "Invalid config" in result.output


# ---------------------------------------------------------------------------
# nbpublish convert / list / publish
# ---------------------------------------------------------------------------


class TestConvertCommand:
    def test_convert_both(self, config_file, notebooks, project):
        result = _invoke(config_file, "convert", str(notebooks / "spin.ipynb"))

        assert result.exit_code == 0, result.output
        assert (project / "scripts" / "spin.py").exists()
        assert (project / "markdown" / "spin.md").exists()

    def test_convert_script_only(self, config_file, notebooks, project):
        result = _invoke(
            config_file, "convert", str(notebooks / "spin.ipynb"), "--to", "script"
        )

        assert result.exit_code == 0, result.output
        assert (project / "scripts" / "spin.py").exists()
        assert not (project / "markdown" / "spin.md").exists()

    def test_convert_unknown_format(self, config_file, notebooks):
        result = _invoke(config_file, "convert", str(notebooks / "spin.ipynb"), "--to", "pdf")
        assert result.exit_code == 1

    def test_convert_missing_notebook(self, config_file, project):
        result = _invoke(config_file, "convert", str(project / "ghost.ipynb"))
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_convert_failure(self, config_file, notebooks):
        nb = write_notebook(notebooks / "bad.ipynb", ("code", "raise KeyError()"))
        result = _invoke(config_file, "convert", str(nb), "--to", "markdown")
        assert result.exit_code == 1
        assert "CellExecutionError" in result.output


class TestListCommand:
    def test_lists_notebooks(self, config_file, notebooks):
        result = _invoke(config_file, "list")
        assert result.exit_code == 0, result.output
        assert "particle.ipynb" in result.output
        assert "readme.txt" not in result.output

    def test_empty(self, config_file):
        result = _invoke(config_file, "list")
        assert result.exit_code == 0
        assert "No notebooks" in result.output


class TestPublishCommand:
    def test_publish_existing_markdown(self, config_file, project):
        (project / "markdown").mkdir()
        (project / "markdown" / "x.md").write_text("# x")
        result = _invoke(config_file, "publish")

        assert result.exit_code == 0, result.output
        assert (project / "site" / "examples" / "x.md").exists()

    def test_publish_without_markdown_fails(self, config_file):
        result = _invoke(config_file, "publish")
        assert result.exit_code == 1
        assert "Publish failed" in result.output


# ---------------------------------------------------------------------------
# nbpublish config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_init_creates_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        result = runner.invoke(app, ["config", "init"])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "nbpublish.yaml").exists()

    def test_init_refuses_overwrite(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        (tmp_path / "nbpublish.yaml").write_text("log_level: debug\n")
        result = runner.invoke(app, ["config", "init"])

        assert result.exit_code == 1
        assert (tmp_path / "nbpublish.yaml").read_text() == "log_level: debug\n"

    def test_show(self, config_file):
        result = _invoke(config_file, "config", "show")
        assert result.exit_code == 0, result.output
        assert "kernel_name" in result.output

    def test_init_force_replaces_broken_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        (tmp_path / "nbpublish.yaml").write_text("build: [unterminated")
        result = runner.invoke(app, ["config", "init", "--force"])

        assert result.exit_code == 0, result.output
        assert "paths:" in (tmp_path / "nbpublish.yaml").read_text()

    def test_show_reports_broken_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
        (tmp_path / "nbpublish.yaml").write_text("build: [unterminated")
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 1
        assert "Invalid YAML" in result.output
