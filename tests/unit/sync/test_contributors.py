"""Unit tests for sync.contributors.ContributorRegistry."""

import pytest
import yaml

from svlmd.sync.contributors import ContributorRegistry
from svlmd.sync.errors import ContributorRegistryError


class TestRegister:
    """Test cases for ContributorRegistry.register()."""

    def test_register_and_lookup(self):
        registry = ContributorRegistry()

        record = registry.register("Alice", "alice@example.com")

        assert record.name == "Alice"
        assert registry.lookup("alice@example.com") == record
        assert record.registered is True

    def test_lookup_unknown_returns_none(self):
        assert ContributorRegistry().lookup("nobody@example.com") is None

    def test_reregister_replaces_name_keeps_position(self):
        """Re-registering an identifier renames it in place."""
        registry = ContributorRegistry()
        registry.register("Alice", "alice@example.com")
        registry.register("Bob", "bob@example.com")

        registry.register("Alice Smith", "alice@example.com")

        assert [r.name for r in registry] == ["Alice Smith", "Bob"]
        assert len(registry) == 2

    def test_append_only(self):
        """Records keep first-seen order."""
        registry = ContributorRegistry()
        for name in ["C", "A", "B"]:
            registry.register(name, f"{name.lower()}@example.com")

        assert [r.identifier for r in registry.records] == [
            "c@example.com", "a@example.com", "b@example.com",
        ]

    def test_input_is_stripped(self):
        registry = ContributorRegistry()

        registry.register("  Alice ", " alice@example.com ")

        assert registry.lookup("alice@example.com").name == "Alice"

    @pytest.mark.parametrize("name,identifier", [("", "a@example.com"), ("Alice", "  ")])
    def test_empty_values_rejected(self, name, identifier):
        with pytest.raises(ContributorRegistryError):
            ContributorRegistry().register(name, identifier)


class TestPersistence:
    """Test cases for ContributorRegistry.load() and save()."""

    def test_save_and_load(self, tmp_path):
        path = tmp_path / ".svlmd" / "contributors.yaml"
        registry = ContributorRegistry()
        registry.register("Alice", "alice@example.com")
        registry.register("Bob", "Bob")

        registry.save(str(path))
        loaded = ContributorRegistry.load(str(path))

        assert [(r.name, r.identifier) for r in loaded] == [
            ("Alice", "alice@example.com"),
            ("Bob", "Bob"),
        ]
        assert yaml.safe_load(path.read_text())["contributors"][0] == {
            "identifier": "alice@example.com",
            "name": "Alice",
        }

    def test_load_missing_file_gives_empty_registry(self, tmp_path):
        assert len(ContributorRegistry.load(str(tmp_path / "none.yaml"))) == 0

    def test_load_empty_file_gives_empty_registry(self, tmp_path):
        path = tmp_path / "contributors.yaml"
        path.write_text("")

        assert len(ContributorRegistry.load(str(path))) == 0

    @pytest.mark.parametrize("content", [
        "contributors: [unclosed",
        "- just a list\n",
        "contributors: nope\n",
        "contributors:\n  - plain string\n",
        "contributors:\n  - identifier: a@example.com\n",
    ])
    def test_invalid_content_raises(self, tmp_path, content):
        path = tmp_path / "contributors.yaml"
        path.write_text(content)

        with pytest.raises(ContributorRegistryError):
            ContributorRegistry.load(str(path))
