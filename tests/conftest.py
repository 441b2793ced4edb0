"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging

import pytest

from tests.fixtures.git_test_repos import init_git_repo


@pytest.fixture
def git_repo(tmp_path):
    """Empty git repository (no commits yet) to use as project root."""
    return init_git_repo(tmp_path / "project")


@pytest.fixture(autouse=True)
def isolated_contributor_env(monkeypatch):
    """Keep contributor overrides from the developer's environment out of tests."""
    monkeypatch.delenv("SVLMD_CONTRIBUTOR_NAME", raising=False)
    monkeypatch.delenv("SVLMD_CONTRIBUTOR_EMAIL", raising=False)


@pytest.fixture(autouse=True)
def reset_svlmd_logger():
    """Drop handlers the CLI attaches to the 'svlmd' logger between tests."""
    yield
    app_logger = logging.getLogger("svlmd")
    app_logger.handlers.clear()
    app_logger.setLevel(logging.NOTSET)
