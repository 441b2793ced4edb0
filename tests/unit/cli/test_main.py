"""Unit tests for cli.main module (Typer application)."""

import logging

from typer.testing import CliRunner

from svlmd import __version__
from svlmd.cli.config import ConfigLoader
from svlmd.cli.main import _configure_logging, app
from svlmd.cli.models import ExitCode
from tests.fixtures.git_test_repos import commit_all, write_page

runner = CliRunner()


def _init(root, name="Alice", email="alice@example.com"):
    return runner.invoke(
        app,
        ["init", "--name", name, "--email", email, "--root", str(root), "--no-color"],
    )


class TestAppCallback:
    """Test cases for the top-level callback."""

    def test_app_version(self):
        result = runner.invoke(app, ["--app-version"])

        assert result.exit_code == 0
        assert f"svlmd version {__version__}" in result.output

    def test_no_command_prints_help(self):
        result = runner.invoke(app, [])

        assert result.exit_code == 0
        assert "QUICK START" in result.output


class TestInitCommand:
    """Test cases for `svlmd init`."""

    def test_init_with_options(self, tmp_path):
        result = _init(tmp_path)

        assert result.exit_code == ExitCode.SUCCESS
        assert "Contributor 'Alice' configured" in result.output
        assert ConfigLoader.load(ConfigLoader.config_path(str(tmp_path))).contributor.email == "alice@example.com"
        assert (tmp_path / "pages" / "Alice.md").exists()

    def test_init_prompts_for_missing_values(self, tmp_path):
        result = runner.invoke(app, ["init", "--root", str(tmp_path), "--no-color"], input="Bob\n\n")

        assert result.exit_code == 0
        config = ConfigLoader.load(ConfigLoader.config_path(str(tmp_path)))
        assert config.contributor.name == "Bob"
        assert config.contributor.email is None

    def test_reinit_warns(self, tmp_path):
        _init(tmp_path)

        result = _init(tmp_path, name="Alice Smith")

        assert result.exit_code == 0
        assert "Existing configuration overwritten" in result.output

    def test_blank_name_fails(self, tmp_path):
        result = _init(tmp_path, name="  ")

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "Initialization failed" in result.output


class TestSyncCommand:
    """Test cases for `svlmd sync`."""

    def test_sync_stamps_pages(self, git_repo):
        _init(git_repo)
        write_page(git_repo, "pages/foo.md", "title:: Foo\n\nHello")
        commit_all(git_repo, "pages")

        result = runner.invoke(app, ["sync", "--root", str(git_repo), "--no-color"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "Sync completed successfully" in result.output
        assert "last-modified-by:: alice@example.com" in (git_repo / "pages" / "foo.md").read_text()

    def test_sync_runs_init_when_unconfigured(self, git_repo):
        write_page(git_repo, "pages/foo.md", "title:: Foo\n")
        commit_all(git_repo, "pages")

        result = runner.invoke(
            app, ["sync", "--root", str(git_repo), "--no-color"], input="Carol\n\n",
        )

        assert result.exit_code == 0
        assert "No configuration found" in result.output
        assert "last-modified-by:: Carol" in (git_repo / "pages" / "foo.md").read_text()

    def test_version_flag_leaves_pages(self, git_repo):
        _init(git_repo)
        (git_repo / "version.txt").write_text("1.0.0\n")
        write_page(git_repo, "pages/foo.md", "title:: Foo\n")
        commit_all(git_repo, "pages")

        result = runner.invoke(app, ["sync", "--version", "--root", str(git_repo), "--no-color"])

        assert result.exit_code == 0
        assert "Release notes recorded" in result.output
        assert (git_repo / "pages" / "foo.md").read_text() == "title:: Foo\n"
        assert (git_repo / "pages" / "1.0.0.md").exists()

    def test_not_a_repository(self, tmp_path):
        _init(tmp_path)

        result = runner.invoke(app, ["sync", "--root", str(tmp_path), "--no-color"])

        assert result.exit_code == ExitCode.BACKEND_ERROR

    def test_logdir_creates_log_file(self, git_repo, tmp_path):
        _init(git_repo)
        logdir = tmp_path / "logs"

        result = runner.invoke(
            app, ["sync", "--root", str(git_repo), "--logdir", str(logdir), "-v", "--no-color"],
        )

        assert result.exit_code == 0
        log_files = list(logdir.glob("svlmd_*.log"))
        assert len(log_files) == 1


class TestConfigureLogging:
    """Test cases for _configure_logging()."""

    def test_verbosity_levels(self):
        for verbosity, level in [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (3, logging.DEBUG)]:
            _configure_logging(verbosity)
            assert logging.getLogger("svlmd").level == level

    def test_repeated_calls_do_not_stack_handlers(self):
        _configure_logging(1)
        _configure_logging(1)

        assert len(logging.getLogger("svlmd").handlers) == 1
