"""Tests for the histver command line."""

import json

import pytest
from typer.testing import CliRunner

from histver import __version__
from histver.cli import app


@pytest.fixture
def runner(root_logger) -> CliRunner:
    return CliRunner()


@pytest.fixture
def project(single_module):
    """alpha tagged 1.0.0, then changed by a second commit."""
    single_module.commit("initial")
    single_module.tag("alpha/1.0.0")
    single_module.write("src/alpha/__init__.py", "VALUE = 2\n")
    single_module.commit("Change [value]")
    return single_module


def invoke(runner, project, *args):
    return runner.invoke(app, ["-C", str(project.root), *args])


class TestGlobalOptions:
    """Test the callback options."""

    def test_version(self, runner):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_without_command(self, runner, project):
        result = invoke(runner, project)
        assert result.exit_code == 0
        assert "status" in result.output

    def test_bad_define(self, runner, project):
        result = invoke(runner, project, "-D", "increment", "version", "alpha")
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_missing_path(self, runner, tmp_path):
        result = runner.invoke(app, ["-C", str(tmp_path / "missing"), "status"])
        assert result.exit_code != 0


class TestVersionCommand:
    def test_snapshot(self, runner, project):
        result = invoke(runner, project, "version", "alpha")
        assert result.exit_code == 0
        assert result.stdout.strip() == "1.1.0-SNAPSHOT"

    def test_define_overrides_increment(self, runner, project):
        result = invoke(runner, project, "-D", "increment=patch", "version", "alpha")
        assert result.exit_code == 0
        assert result.stdout.strip() == "1.0.1-SNAPSHOT"

    def test_trace(self, runner, project):
        result = invoke(runner, project, "--trace", "alpha", "version", "alpha")
        assert result.exit_code == 0
        assert "1.1.0-SNAPSHOT" in result.output

    def test_unknown_module(self, runner, project):
        result = invoke(runner, project, "version", "gamma")
        assert result.exit_code == 1
        assert "gamma" in result.output

    def test_not_a_repository(self, runner, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "alpha"\n')
        result = runner.invoke(app, ["-C", str(tmp_path), "version", "alpha"])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestStatusCommand:
    def test_json(self, runner, project):
        result = invoke(runner, project, "status", "--json")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        alpha = data["default:alpha"]
        assert alpha["version"] == "1.1.0-SNAPSHOT"
        assert alpha["refName"] == "alpha/1.0.0"
        assert alpha["snapshot"] == "true"
        assert alpha["lastCommit"] == project.head()

    def test_table(self, runner, project):
        result = invoke(runner, project, "status")
        assert result.exit_code == 0
        assert "default:alpha" in result.output
        assert "1.1.0-SNAPSHOT" in result.output
        assert "snapshot" in result.output


class TestTagsCommand:
    def test_tags(self, runner, project):
        result = invoke(runner, project, "tags", "alpha")
        assert result.exit_code == 0
        assert "alpha/1.0.0" in result.output

    def test_no_tags(self, runner, single_module):
        single_module.commit("initial")
        result = invoke(runner, single_module, "tags", "alpha")
        assert result.exit_code == 0
        assert "No tags" in result.output


class TestChangesCommand:
    def test_human_output(self, runner, project):
        result = invoke(runner, project, "changes", "alpha")
        assert result.exit_code == 0
        assert "Unreleased" in result.output
        assert "Change [value]" in result.output
        assert "alpha/1.0.0" in result.output

    def test_json(self, runner, project):
        result = invoke(runner, project, "changes", "alpha", "--json")
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [r["tag"] for r in data] == [None, "alpha/1.0.0"]
        assert data[0]["commits"][0]["subject"] == "Change [value]"

    def test_bad_boundary(self, runner, project):
        result = invoke(runner, project, "changes", "alpha", "--from", "9.9.9")
        assert result.exit_code == 1
        assert "9.9.9" in result.output


class TestFilesCommand:
    def test_files(self, runner, project):
        project.write("docs/guide.md", "")
        result = invoke(runner, project, "files", "alpha")
        assert result.exit_code == 0
        assert result.stdout.splitlines() == ["pyproject.toml", "src/alpha/__init__.py"]
