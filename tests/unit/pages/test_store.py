"""Unit tests for pages.store and pages.naming."""

import hashlib
import os
import stat
from unittest.mock import patch

import pytest

from svlmd.pages.errors import PageIOError, ParseError
from svlmd.pages.naming import PageNaming
from svlmd.pages.parser import PageParser
from svlmd.pages.store import PageStore, write_atomic


class TestPageNaming:
    """Test cases for PageNaming."""

    def test_simple_title(self):
        assert PageNaming.title_to_filename("Foo") == "Foo.md"
        assert PageNaming.filename_to_title("pages/Foo.md") == "Foo"

    def test_namespaced_title(self):
        """Namespace separators map to triple underscores."""
        assert PageNaming.title_to_filename("Cardiology/Arrhythmia") == "Cardiology___Arrhythmia.md"
        assert PageNaming.filename_to_title("Cardiology___Arrhythmia.md") == "Cardiology/Arrhythmia"

    def test_version_title_keeps_dots(self):
        assert PageNaming.title_to_filename("1.2.3") == "1.2.3.md"
        assert PageNaming.filename_to_title("pages/1.2.3.md") == "1.2.3"

    def test_empty_title_rejected(self):
        with pytest.raises(ValueError):
            PageNaming.title_to_filename("  ")


class TestWriteAtomic:
    """Test cases for write_atomic()."""

    def test_writes_and_creates_directories(self, tmp_path):
        target = tmp_path / "a" / "b" / "file.txt"

        write_atomic(str(target), b"data")

        assert target.read_bytes() == b"data"

    def test_failed_replace_keeps_original_and_cleans_up(self, tmp_path):
        """A failure before the rename leaves the old file and no temp files."""
        target = tmp_path / "ledger.yaml"
        target.write_bytes(b"old")

        with patch("os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                write_atomic(str(target), b"new")

        assert target.read_bytes() == b"old"
        assert os.listdir(tmp_path) == ["ledger.yaml"]

    @pytest.mark.parametrize("mode", [0o644, 0o664, 0o600])
    def test_existing_file_keeps_its_mode(self, tmp_path, mode):
        target = tmp_path / "page.md"
        target.write_bytes(b"old")
        os.chmod(target, mode)

        write_atomic(str(target), b"new")

        assert stat.S_IMODE(os.stat(target).st_mode) == mode

    def test_new_file_follows_umask(self, tmp_path):
        target = tmp_path / "page.md"
        old_umask = os.umask(0o022)
        try:
            write_atomic(str(target), b"new")
        finally:
            os.umask(old_umask)

        assert stat.S_IMODE(os.stat(target).st_mode) == 0o644


class TestPageStore:
    """Test cases for PageStore."""

    def test_path_for_title(self, tmp_path):
        store = PageStore(str(tmp_path))

        assert store.path_for_title("Team/Alice") == "pages/Team___Alice.md"

    def test_read_and_write(self, tmp_path):
        """Pages read from disk write back unchanged."""
        (tmp_path / "pages").mkdir()
        (tmp_path / "pages" / "foo.md").write_bytes(b"title:: Foo\r\n\r\nHello")
        store = PageStore(str(tmp_path))

        page = store.read("pages/foo.md")
        data = store.write(page)

        assert data == b"title:: Foo\r\n\r\nHello"
        assert (tmp_path / "pages" / "foo.md").read_bytes() == data

    def test_read_missing_raises_page_io_error(self, tmp_path):
        store = PageStore(str(tmp_path))

        with pytest.raises(PageIOError) as exc_info:
            store.read("pages/missing.md")

        assert exc_info.value.operation == "read"
        assert exc_info.value.file_path == "pages/missing.md"

    def test_read_binary_raises_parse_error(self, tmp_path):
        (tmp_path / "pages").mkdir()
        (tmp_path / "pages" / "blob.md").write_bytes(b"\x00\x01\x02")
        store = PageStore(str(tmp_path))

        with pytest.raises(ParseError):
            store.read("pages/blob.md")

    def test_write_failure_raises_page_io_error(self, tmp_path):
        store = PageStore(str(tmp_path))
        page = PageParser.parse("pages/foo.md", "title:: Foo\n")

        with patch("svlmd.pages.store.write_atomic", side_effect=OSError("read-only")):
            with pytest.raises(PageIOError) as exc_info:
                store.write(page)

        assert exc_info.value.operation == "write"
        assert "read-only" in str(exc_info.value)

    def test_fingerprint(self, tmp_path):
        (tmp_path / "pages").mkdir()
        (tmp_path / "pages" / "foo.md").write_bytes(b"content")
        store = PageStore(str(tmp_path))

        assert store.fingerprint("pages/foo.md") == hashlib.sha256(b"content").hexdigest()
        assert store.fingerprint("pages/missing.md") is None

    def test_custom_pages_dir(self, tmp_path):
        store = PageStore(str(tmp_path), pages_dir="graph/pages/")

        assert store.pages_dir == "graph/pages"
        assert store.absolute("graph/pages/foo.md") == os.path.join(str(tmp_path), "graph", "pages", "foo.md")
