"""Unit tests for sync.ledger.LedgerManager."""

import os
from unittest.mock import patch

import pytest
import yaml

from svlmd.sync.errors import LedgerError, LedgerFilesystemError
from svlmd.sync.ledger import LedgerManager
from svlmd.sync.models import SyncLedger


class TestLedgerLoad:
    """Test cases for LedgerManager.load()."""

    def test_load_missing_file_returns_fresh_ledger(self, tmp_path):
        ledger = LedgerManager.load(str(tmp_path / "ledger.yaml"))

        assert ledger == SyncLedger()
        assert ledger.version == 0
        assert ledger.reference is None

    def test_load_valid_ledger(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text(
            "reference: abc123\n"
            "version: 4\n"
            "synced_at: '2024-01-15T10:30:00Z'\n"
            "fingerprints:\n"
            "  pages/foo.md: '0f0f'\n"
        )

        ledger = LedgerManager.load(str(path))

        assert ledger.reference == "abc123"
        assert ledger.version == 4
        assert ledger.synced_at == "2024-01-15T10:30:00Z"
        assert ledger.fingerprints == {"pages/foo.md": "0f0f"}

    def test_unknown_keys_ignored(self, tmp_path):
        """Keys written by newer versions do not break loading."""
        path = tmp_path / "ledger.yaml"
        path.write_text("version: 2\nfuture_key: something\n")

        assert LedgerManager.load(str(path)).version == 2

    def test_empty_file_returns_fresh_ledger(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text("   \n")

        assert LedgerManager.load(str(path)) == SyncLedger()

    @pytest.mark.parametrize("content,field", [
        ("version: -1\n", "version"),
        ("version: two\n", "version"),
        ("version: true\n", "version"),
        ("reference: 12\n", "reference"),
        ("synced_at: 5\n", "synced_at"),
        ("fingerprints: [a, b]\n", "fingerprints"),
    ])
    def test_invalid_field_raises_ledger_error(self, tmp_path, content, field):
        path = tmp_path / "ledger.yaml"
        path.write_text(content)

        with pytest.raises(LedgerError) as exc_info:
            LedgerManager.load(str(path))

        assert exc_info.value.ledger_field == field

    def test_invalid_yaml_raises_ledger_error(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text("version: [unclosed\n")

        with pytest.raises(LedgerError):
            LedgerManager.load(str(path))

    def test_non_dict_raises_ledger_error(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(LedgerError):
            LedgerManager.load(str(path))

    def test_directory_path_raises_filesystem_error(self, tmp_path):
        with pytest.raises(LedgerFilesystemError) as exc_info:
            LedgerManager.load(str(tmp_path))

        assert exc_info.value.operation == "read"


class TestLedgerSave:
    """Test cases for LedgerManager.save()."""

    def test_save_then_load(self, tmp_path):
        path = tmp_path / ".svlmd" / "ledger.yaml"
        ledger = SyncLedger(
            reference="abc123",
            version=7,
            synced_at="2024-01-15T10:30:00Z",
            fingerprints={"pages/b.md": "2", "pages/a.md": "1"},
        )

        LedgerManager.save(str(path), ledger)

        assert LedgerManager.load(str(path)) == ledger
        data = yaml.safe_load(path.read_text())
        assert list(data) == ["reference", "version", "synced_at", "fingerprints"]
        assert list(data["fingerprints"]) == ["pages/a.md", "pages/b.md"]

    def test_failed_write_keeps_previous_ledger(self, tmp_path):
        """An interrupted save leaves the old ledger readable."""
        path = tmp_path / "ledger.yaml"
        LedgerManager.save(str(path), SyncLedger(reference="old", version=1))

        with patch("os.replace", side_effect=OSError("disk full")):
            with pytest.raises(LedgerFilesystemError) as exc_info:
                LedgerManager.save(str(path), SyncLedger(reference="new", version=2))

        assert exc_info.value.operation == "write"
        assert LedgerManager.load(str(path)) == SyncLedger(reference="old", version=1)
        assert os.listdir(tmp_path) == ["ledger.yaml"]
