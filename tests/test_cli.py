"""Tests for the CLI.

These tests run the commands against a real project file in a temporary
directory. Release commands are pointed at harmless shell commands
through environment variables.
"""

import json
import subprocess
import sys
import textwrap
from pathlib import Path

import pytest
from typer.testing import CliRunner

from unibuild import __version__
from unibuild.cli import app

runner = CliRunner()

PROJECT_FILE = """
def upper(options, text):
    return text.upper()


def configure(project):
    bundle = project.asset("bundle", inputs="src.txt", outfile="bundle.txt", build=upper)
    project.asset(
        "dist",
        inputs=bundle,
        outfile="dist.txt",
        command="cp bundle.txt dist.txt",
        release_only=True,
    )
    project.lint("style", "printf lint > lint.txt", autofix_command="printf fixed > lint.txt")
    project.test("unit", "printf tested > test.txt", requires=bundle)
"""


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory that is also the working directory."""
    (tmp_path / "unibuild.py").write_text(textwrap.dedent(PROJECT_FILE))
    (tmp_path / "src.txt").write_text("hello")
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestCLIHelp:
    """Test CLI help and version commands."""

    def test_help_returns_zero(self) -> None:
        """CLI --help should return exit code 0."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "build" in result.stdout
        assert "release" in result.stdout

    def test_version_flag(self) -> None:
        """CLI --version should print version and exit 0."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_short_version_flag(self) -> None:
        """CLI -V should print version and exit 0."""
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_no_args_shows_help(self) -> None:
        """CLI with no args should show help."""
        result = runner.invoke(app, [])
        assert "Usage:" in result.stdout


class TestCLIConfig:
    """Test CLI config command."""

    def test_config_command(self) -> None:
        """CLI config should show all configuration sections."""
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "Project files" in result.stdout
        assert "Max workers" in result.stdout
        assert "Bump command" in result.stdout

    def test_config_json(self) -> None:
        """CLI config --json should output all settings as JSON."""
        result = runner.invoke(app, ["config", "--json"])
        assert result.exit_code == 0
        config_data = json.loads(result.stdout)
        for key in [
            "project_files",
            "log_level",
            "parallel",
            "max_workers",
            "command_timeout",
            "fail_on_stderr",
            "shell",
            "bump_command",
            "push_command",
            "publish_command",
        ]:
            assert key in config_data, f"Missing key: {key}"


class TestCLIBuild:
    """Test CLI build command."""

    def test_build(self, project_dir: Path) -> None:
        """build should build outdated assets, skipping release-only ones."""
        result = runner.invoke(app, ["build"])

        assert result.exit_code == 0
        assert (project_dir / "bundle.txt").read_text() == "HELLO"
        assert not (project_dir / "dist.txt").exists()

    def test_build_release(self, project_dir: Path) -> None:
        """build -r should include release-only assets."""
        result = runner.invoke(app, ["build", "-r"])

        assert result.exit_code == 0
        assert (project_dir / "dist.txt").read_text() == "HELLO"

    def test_build_up_to_date(self, project_dir: Path) -> None:
        """A second build should have nothing to do."""
        runner.invoke(app, ["build"])
        result = runner.invoke(app, ["build"])

        assert result.exit_code == 0
        assert "up to date" in result.stdout

    def test_build_force(self, project_dir: Path) -> None:
        """build -f should rebuild up-to-date assets."""
        runner.invoke(app, ["build"])
        (project_dir / "bundle.txt").write_text("stale")

        result = runner.invoke(app, ["build", "-f", "bundle"])

        assert result.exit_code == 0
        assert (project_dir / "bundle.txt").read_text() == "HELLO"

    def test_build_json(self, project_dir: Path) -> None:
        """build --json should output the build summary."""
        result = runner.invoke(app, ["-l", "WARNING", "build", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["stages"] == [["bundle"]]
        assert data["total"] == 1
        assert data["succeeded"] == 1
        assert data["failed"] == 0
        assert data["results"][0]["status"] == "succeeded"

    def test_build_dry_run(self, project_dir: Path) -> None:
        """build --dry-run should list stages without building."""
        result = runner.invoke(app, ["build", "--dry-run", "-r"])

        assert result.exit_code == 0
        assert "Stage 1: bundle" in result.stdout
        assert "Stage 2: dist" in result.stdout
        assert not (project_dir / "bundle.txt").exists()

    def test_build_parallel(self, project_dir: Path) -> None:
        """build -p should build in parallel mode."""
        result = runner.invoke(app, ["build", "-p", "-r"])

        assert result.exit_code == 0
        assert (project_dir / "dist.txt").exists()

    def test_unknown_asset(self, project_dir: Path) -> None:
        """Unknown asset names should exit 1."""
        result = runner.invoke(app, ["build", "nope"])
        assert result.exit_code == 1

    def test_failed_build(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A failed asset build should exit 1."""
        (tmp_path / "unibuild.py").write_text(
            "def configure(project):\n"
            "    project.asset('broken', outfile='broken.txt', command='exit 1')\n"
        )
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["build"])

        assert result.exit_code == 1

    def test_directory_option(
        self, project_dir: Path, tmp_path_factory: pytest.TempPathFactory,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """-C should run as if started in the given directory."""
        monkeypatch.chdir(tmp_path_factory.mktemp("elsewhere"))

        result = runner.invoke(app, ["-C", str(project_dir), "build"])

        assert result.exit_code == 0
        assert (project_dir / "bundle.txt").read_text() == "HELLO"

    def test_missing_directory(self, tmp_path: Path) -> None:
        """-C with a missing directory should exit 1."""
        result = runner.invoke(app, ["-C", str(tmp_path / "missing"), "build"])
        assert result.exit_code == 1

    def test_missing_project_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Running outside a project should exit 1."""
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["build"])
        assert result.exit_code == 1

    def test_invalid_project(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Configuration errors in the project file should exit 1."""
        (tmp_path / "unibuild.py").write_text(
            "def configure(project):\n"
            "    project.asset('both', outfile='x', build=str, command='true')\n"
        )
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["build"])

        assert result.exit_code == 1


class TestCLIChecks:
    """Test CLI lint and test commands."""

    def test_lint(self, project_dir: Path) -> None:
        """lint should run the linter command."""
        result = runner.invoke(app, ["lint"])

        assert result.exit_code == 0
        assert (project_dir / "lint.txt").read_text() == "lint"

    def test_lint_fix(self, project_dir: Path) -> None:
        """lint -f should run the autofix command."""
        result = runner.invoke(app, ["lint", "-f"])

        assert result.exit_code == 0
        assert (project_dir / "lint.txt").read_text() == "fixed"

    def test_test(self, project_dir: Path) -> None:
        """test should build required assets and run the tester."""
        result = runner.invoke(app, ["test"])

        assert result.exit_code == 0
        assert (project_dir / "test.txt").read_text() == "tested"
        assert (project_dir / "bundle.txt").read_text() == "HELLO"

    def test_failing_check(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A failing tester should exit 1."""
        (tmp_path / "unibuild.py").write_text(
            "def configure(project):\n    project.test('unit', 'exit 2')\n"
        )
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["test"])

        assert result.exit_code == 1


class TestCLIClean:
    """Test CLI clean command."""

    def test_clean(self, project_dir: Path) -> None:
        """clean should remove built outputs."""
        runner.invoke(app, ["build", "-r"])

        result = runner.invoke(app, ["clean"])

        assert result.exit_code == 0
        assert not (project_dir / "bundle.txt").exists()
        assert not (project_dir / "dist.txt").exists()

    def test_clean_named(self, project_dir: Path) -> None:
        """clean with names should remove only those outputs."""
        runner.invoke(app, ["build", "-r"])

        result = runner.invoke(app, ["clean", "dist"])

        assert result.exit_code == 0
        assert (project_dir / "bundle.txt").exists()
        assert not (project_dir / "dist.txt").exists()

    def test_clean_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """An output that cannot be removed should exit 1."""
        (tmp_path / "unibuild.py").write_text(
            "def configure(project):\n    project.asset('tree', outfile='tree')\n"
        )
        (tmp_path / "tree").mkdir()
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["clean"])

        assert result.exit_code == 1
        assert (tmp_path / "tree").is_dir()

    def test_clean_nothing(self, project_dir: Path) -> None:
        """clean with nothing built should report it."""
        result = runner.invoke(app, ["clean"])

        assert result.exit_code == 0
        assert "Nothing to clean" in result.stdout


class TestCLIRelease:
    """Test CLI ci and release commands."""

    @pytest.fixture(autouse=True)
    def release_commands(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("UNIBUILD_BUMP_COMMAND", "printf {version} > version.txt")
        monkeypatch.setenv("UNIBUILD_PUSH_COMMAND", "printf pushed > pushed.txt")
        monkeypatch.setenv("UNIBUILD_PUBLISH_COMMAND", "printf published > published.txt")

    def test_ci(self, project_dir: Path) -> None:
        """ci should build, lint, test, and build for release."""
        result = runner.invoke(app, ["ci"])

        assert result.exit_code == 0
        assert (project_dir / "lint.txt").read_text() == "lint"
        assert (project_dir / "test.txt").read_text() == "tested"
        assert (project_dir / "dist.txt").read_text() == "HELLO"

    def test_bump(self, project_dir: Path) -> None:
        """bump should run the bump command with the version."""
        result = runner.invoke(app, ["bump", "1.2.3"])

        assert result.exit_code == 0
        assert (project_dir / "version.txt").read_text() == "1.2.3"

    def test_publish(self, project_dir: Path) -> None:
        """publish should run the publish command."""
        result = runner.invoke(app, ["publish"])

        assert result.exit_code == 0
        assert (project_dir / "published.txt").read_text() == "published"

    def test_release(self, project_dir: Path) -> None:
        """release should bump, build for release, push, and publish."""
        result = runner.invoke(app, ["release", "2.0.0"])

        assert result.exit_code == 0
        assert (project_dir / "version.txt").read_text() == "2.0.0"
        assert (project_dir / "dist.txt").read_text() == "HELLO"
        assert (project_dir / "pushed.txt").read_text() == "pushed"
        assert (project_dir / "published.txt").read_text() == "published"

    def test_failing_bump(self, project_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A failing release command should exit 1."""
        monkeypatch.setenv("UNIBUILD_BUMP_COMMAND", "exit 1")

        result = runner.invoke(app, ["bump", "1.0.0"])

        assert result.exit_code == 1


class TestModuleEntryPoint:
    """Test python -m unibuild entry point."""

    def test_module_help(self) -> None:
        """python -m unibuild --help should work."""
        result = subprocess.run(
            [sys.executable, "-m", "unibuild", "--help"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "Usage" in result.stdout

    def test_module_version(self) -> None:
        """python -m unibuild --version should work."""
        result = subprocess.run(
            [sys.executable, "-m", "unibuild", "--version"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert __version__ in result.stdout
