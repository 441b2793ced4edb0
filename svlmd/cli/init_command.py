"""InitCommand for project and contributor setup.

This module implements `svlmd init`: it records the contributor in
.svlmd/config.yaml, adds them to the contributor registry and creates their
contributor page.
"""

import logging
import os
from typing import Optional

from svlmd.cli.config import ConfigLoader
from svlmd.cli.errors import ConfigError, ConfigNotFoundError, InitError
from svlmd.cli.models import ContributorConfig, ProjectConfig
from svlmd.pages.errors import PageError
from svlmd.pages.models import Page
from svlmd.pages.store import PageStore
from svlmd.sync.contributors import ContributorRegistry
from svlmd.sync.errors import ContributorRegistryError

logger = logging.getLogger(__name__)

CONTRIBUTOR_PAGE_PROPERTIES = {
    "icon": "🙂",
    "exclude-from-graph-view": "true",
    "tags": "Author",
}


class InitCommand:
    """Handles initialization of a contributor's checkout.

    Example:
        >>> init = InitCommand("/path/to/project")
        >>> init.run(name="Alice", email="alice@example.com")
        >>> print(init.config_path)
    """

    def __init__(self, root: str, config_path: Optional[str] = None):
        """Initialize the init command.

        Args:
            root: Project root directory
            config_path: Optional config file path (defaults to <root>/.svlmd/config.yaml)
        """
        self.root = os.path.abspath(root)
        self.config_path = config_path or ConfigLoader.config_path(self.root)
        self.registry_path = os.path.join(self.root, ContributorRegistry.DEFAULT_REGISTRY_FILE)
        self.replaced_existing = False
        self.contributor_page: Optional[str] = None

    def run(self, name: str, email: Optional[str] = None) -> ProjectConfig:
        """Write the configuration and register the contributor.

        An existing configuration is overwritten; its non-contributor
        settings are kept when it is still readable.

        Args:
            name: Contributor display name
            email: Contributor e-mail (optional)

        Returns:
            The saved ProjectConfig

        Raises:
            InitError: If the name is empty or any file cannot be written
        """
        name = (name or "").strip()
        email = (email or "").strip() or None
        if not name:
            raise InitError("Contributor name cannot be empty")

        config = self._existing_config()
        config.contributor = ContributorConfig(name=name, email=email)

        try:
            ConfigLoader.save(self.config_path, config)
        except ConfigError as e:
            raise InitError(f"Failed to save configuration: {e}")
        logger.info(f"Saved configuration to {self.config_path}")

        try:
            registry = ContributorRegistry.load(self.registry_path)
            registry.register(name, config.contributor.identifier)
            registry.save(self.registry_path)
        except ContributorRegistryError as e:
            raise InitError(f"Failed to register contributor: {e}")

        store = PageStore(self.root, config.pages_dir, config.page_extensions[0])
        try:
            os.makedirs(store.absolute(store.pages_dir), exist_ok=True)
            self.contributor_page = self._ensure_contributor_page(store, name)
        except (OSError, ValueError, PageError) as e:
            raise InitError(f"Failed to create contributor page: {e}")

        return config

    def _existing_config(self) -> ProjectConfig:
        if not os.path.exists(self.config_path):
            return ProjectConfig()

        self.replaced_existing = True
        try:
            config = ConfigLoader.load(self.config_path)
        except (ConfigError, ConfigNotFoundError) as e:
            logger.warning(f"Existing configuration is unreadable, replacing it: {e}")
            return ProjectConfig()
        logger.info(f"Overwriting existing configuration at {self.config_path}")
        return config

    @staticmethod
    def _ensure_contributor_page(store: PageStore, name: str) -> Optional[str]:
        """Create the contributor's page when missing.

        Returns:
            Path of the created page, or None if it already existed
        """
        path = store.path_for_title(name)
        if store.exists(path):
            logger.debug(f"Contributor page {path} already exists")
            return None
        store.write(Page(path=path).with_properties(CONTRIBUTOR_PAGE_PROPERTIES))
        logger.info(f"Created contributor page {path}")
        return path
