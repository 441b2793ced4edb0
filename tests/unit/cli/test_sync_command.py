"""Unit tests for cli.sync_command module."""

from unittest.mock import MagicMock

import pytest

from svlmd.cli.config import ConfigLoader
from svlmd.cli.errors import ConfigError
from svlmd.cli.models import ContributorConfig, ExitCode, ProjectConfig
from svlmd.cli.output import OutputHandler
from svlmd.cli.sync_command import SyncCommand
from svlmd.git_integration.errors import GitRepositoryError
from svlmd.sync.errors import LedgerError, LedgerFilesystemError
from svlmd.sync.models import PageFailure, SyncPhase, SyncResult, VersionPolicy


@pytest.fixture
def output():
    return MagicMock(spec=OutputHandler)


def _command(tmp_path, output, result=None, error=None):
    engine = MagicMock()
    if error is not None:
        engine.run.side_effect = error
    else:
        engine.run.return_value = result or SyncResult(phase=SyncPhase.DONE)
    return SyncCommand(str(tmp_path), output_handler=output, engine=engine), engine


def _write_config(root, **kwargs):
    config = ProjectConfig(contributor=ContributorConfig("Alice", "alice@example.com"), **kwargs)
    ConfigLoader.save(ConfigLoader.config_path(str(root)), config)


class TestExitCodes:
    """Engine outcomes are mapped to exit codes."""

    def test_success(self, tmp_path, output):
        result = SyncResult(changed=["pages/a.md"], updated=["pages/a.md"], phase=SyncPhase.DONE)
        command, engine = _command(tmp_path, output, result)

        assert command.run() == ExitCode.SUCCESS
        engine.run.assert_called_once_with(version_only=False)
        output.print_sync_summary.assert_called_once_with(result, version_only=False)

    def test_partial_failure_is_success(self, tmp_path, output):
        result = SyncResult(
            changed=["pages/a.md", "pages/b.md"],
            updated=["pages/a.md"],
            failed=[PageFailure("pages/b.md", "Binary content")],
        )
        command, _ = _command(tmp_path, output, result)

        assert command.run() == ExitCode.SUCCESS

    def test_no_page_updated(self, tmp_path, output):
        result = SyncResult(changed=["pages/a.md"], failed=[PageFailure("pages/a.md", "bad")])
        command, _ = _command(tmp_path, output, result)

        assert command.run() == ExitCode.NO_PAGES_UPDATED

    def test_version_only_never_reports_no_pages_updated(self, tmp_path, output):
        command, engine = _command(tmp_path, output, SyncResult(changed=["pages/a.md"]))

        assert command.run(version_only=True) == ExitCode.SUCCESS
        engine.run.assert_called_once_with(version_only=True)

    def test_backend_error(self, tmp_path, output):
        error = GitRepositoryError(str(tmp_path), "not a git repository", "fatal: not a git repository")
        command, _ = _command(tmp_path, output, error=error)

        assert command.run() == ExitCode.BACKEND_ERROR
        output.info.assert_called_with("fatal: not a git repository")

    @pytest.mark.parametrize("error", [
        LedgerError("must be an integer", "version"),
        LedgerFilesystemError("/x/.svlmd/ledger.yaml", "write", "disk full"),
    ])
    def test_ledger_errors(self, tmp_path, output, error):
        command, _ = _command(tmp_path, output, error=error)

        assert command.run() == ExitCode.LEDGER_ERROR

    def test_unexpected_error(self, tmp_path, output):
        command, _ = _command(tmp_path, output, error=RuntimeError("boom"))

        assert command.run() == ExitCode.GENERAL_ERROR
        output.error.assert_called_once_with("Unexpected error: boom")


class TestConfiguration:
    """SyncCommand builds its engine from the project configuration."""

    def test_missing_config(self, tmp_path, output):
        assert SyncCommand(str(tmp_path), output_handler=output).run() == ExitCode.CONFIG_ERROR

    def test_invalid_config(self, tmp_path, output):
        config_file = tmp_path / ".svlmd" / "config.yaml"
        config_file.parent.mkdir()
        config_file.write_text("max_workers: many\n")

        assert SyncCommand(str(tmp_path), output_handler=output).run() == ExitCode.CONFIG_ERROR

    def test_missing_contributor(self, tmp_path, output):
        ConfigLoader.save(ConfigLoader.config_path(str(tmp_path)), ProjectConfig())

        assert SyncCommand(str(tmp_path), output_handler=output).run() == ExitCode.CONFIG_ERROR
        assert "Contributor name" in output.error.call_args.args[0]

    def test_engine_built_from_config(self, tmp_path, output):
        _write_config(
            tmp_path,
            pages_dir="notes",
            page_extensions=[".md", ".org"],
            version_file="VERSION",
            version_policy=VersionPolicy.PER_PAGE,
            release_notes=False,
            max_workers=3,
        )
        command = SyncCommand(str(tmp_path), output_handler=output)

        engine = command._build_engine()

        assert engine.contributor_identifier == "alice@example.com"
        assert engine.store.pages_dir == "notes"
        assert engine.change_detector.extensions == (".md", ".org")
        assert engine.release_notes.version_path == str(tmp_path / "VERSION")
        assert engine.version_policy is VersionPolicy.PER_PAGE
        assert engine.record_release_notes is False
        assert engine.max_workers == 3

    def test_dotenv_overrides_contributor(self, tmp_path, output, monkeypatch):
        _write_config(tmp_path)
        monkeypatch.setenv("SVLMD_CONTRIBUTOR_EMAIL", "ci@example.com")

        config = SyncCommand(str(tmp_path), output_handler=output).load_config()

        assert config.contributor.identifier == "ci@example.com"

    def test_not_a_repository_maps_to_backend_error(self, tmp_path, output):
        _write_config(tmp_path)
        (tmp_path / "pages").mkdir()
        (tmp_path / "pages" / "a.md").write_text("title:: A\n")

        assert SyncCommand(str(tmp_path), output_handler=output).run() == ExitCode.BACKEND_ERROR
        assert (tmp_path / "pages" / "a.md").read_text() == "title:: A\n"

    def test_config_error_class_maps_to_config_error(self, tmp_path, output):
        command, _ = _command(tmp_path, output, error=ConfigError("bad"))

        assert command.run() == ExitCode.CONFIG_ERROR
