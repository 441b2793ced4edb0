"""Project configuration loading, saving and project root discovery.

Configuration file structure (.svlmd/config.yaml):
    contributor:
      name: "Alice"
      email: "alice@example.com"
    pages_dir: "pages"
    page_extensions: [".md"]
    version_file: "version.txt"
    version_policy: "per-run"
    release_notes: true
    max_workers: 1

The contributor can also be supplied through the environment (or a `.env`
file in the project root, loaded with python-dotenv):
    SVLMD_CONTRIBUTOR_NAME, SVLMD_CONTRIBUTOR_EMAIL
"""

import logging
import os
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from svlmd.cli.errors import ConfigError, ConfigNotFoundError
from svlmd.cli.models import ContributorConfig, ProjectConfig
from svlmd.pages.store import write_atomic
from svlmd.sync.models import VersionPolicy

logger = logging.getLogger(__name__)

SVLMD_DIR = ".svlmd"
CONTRIBUTOR_NAME_ENV = "SVLMD_CONTRIBUTOR_NAME"
CONTRIBUTOR_EMAIL_ENV = "SVLMD_CONTRIBUTOR_EMAIL"


def find_project_root(start: Optional[str] = None) -> str:
    """Find the project root for a working directory.

    Walks up from `start` to the first directory containing `.svlmd/` or
    `pages/`. Falls back to `start` itself when no ancestor qualifies.

    Args:
        start: Directory to start from (defaults to the current directory)

    Returns:
        Absolute path of the project root
    """
    start = os.path.abspath(start or os.getcwd())
    current = start
    while True:
        if os.path.isdir(os.path.join(current, SVLMD_DIR)) or os.path.isdir(os.path.join(current, "pages")):
            return current
        parent = os.path.dirname(current)
        if parent == current:
            return start
        current = parent


class ConfigLoader:
    """Handles configuration file loading, validation, and saving."""

    DEFAULT_CONFIG_FILE = '.svlmd/config.yaml'

    VERSION_POLICIES = {policy.value: policy for policy in VersionPolicy}

    @classmethod
    def config_path(cls, root: str) -> str:
        return os.path.join(root, cls.DEFAULT_CONFIG_FILE)

    @classmethod
    def load(cls, config_path: str) -> ProjectConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            ProjectConfig with defaults filled in

        Raises:
            ConfigNotFoundError: If the file does not exist
            ConfigError: If the file cannot be read or is invalid
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise ConfigNotFoundError(config_path)
        except OSError as e:
            raise ConfigError(f"Cannot read {config_path}: {e}")

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def save(cls, config_path: str, config: ProjectConfig) -> None:
        """Save configuration to a YAML file.

        Raises:
            ConfigError: If the file cannot be written
        """
        config_dict: Dict[str, Any] = {}
        if config.contributor is not None:
            contributor = {'name': config.contributor.name}
            if config.contributor.email:
                contributor['email'] = config.contributor.email
            config_dict['contributor'] = contributor
        config_dict.update({
            'pages_dir': config.pages_dir,
            'page_extensions': list(config.page_extensions),
            'version_file': config.version_file,
            'version_policy': config.version_policy.value,
            'release_notes': config.release_notes,
            'max_workers': config.max_workers,
        })

        yaml_str = yaml.safe_dump(
            config_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        try:
            write_atomic(config_path, yaml_str.encode('utf-8'))
        except OSError as e:
            raise ConfigError(f"Cannot write {config_path}: {e}")

        logger.debug(f"Saved configuration to {config_path}")

    @classmethod
    def apply_environment(cls, config: ProjectConfig, dotenv_path: Optional[str] = None) -> ProjectConfig:
        """Override the contributor from environment variables.

        Args:
            config: Configuration loaded from disk
            dotenv_path: Optional `.env` file to load first (existing
                environment variables win over the file)

        Returns:
            The same config, updated in place
        """
        if dotenv_path:
            load_dotenv(dotenv_path)

        name = os.getenv(CONTRIBUTOR_NAME_ENV)
        email = os.getenv(CONTRIBUTOR_EMAIL_ENV)
        if not name and not email:
            return config

        current = config.contributor or ContributorConfig(name="")
        config.contributor = ContributorConfig(
            name=(name or current.name).strip(),
            email=(email or current.email or "").strip() or None,
        )
        logger.debug("Contributor overridden from environment")
        return config

    @classmethod
    def require_contributor(cls, config: ProjectConfig) -> ContributorConfig:
        """Return the configured contributor.

        Raises:
            ConfigError: If no contributor name is configured
        """
        if config.contributor is None or not config.contributor.name:
            raise ConfigError(
                f"Contributor name is not configured (run 'svlmd init' or set {CONTRIBUTOR_NAME_ENV})",
                'contributor.name'
            )
        return config.contributor

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> ProjectConfig:
        """Parse and validate configuration dictionary.

        Raises:
            ConfigError: If a field has the wrong type or value
        """
        config = ProjectConfig()

        contributor = config_dict.get('contributor')
        if contributor is not None:
            if not isinstance(contributor, dict):
                raise ConfigError(
                    f"Field 'contributor' must be a dictionary, got {type(contributor).__name__}",
                    'contributor'
                )
            name = contributor.get('name')
            if name is None or not str(name).strip():
                raise ConfigError("Contributor name cannot be empty", 'contributor.name')
            email = contributor.get('email')
            config.contributor = ContributorConfig(
                name=str(name).strip(),
                email=str(email).strip() if email else None,
            )

        pages_dir = config_dict.get('pages_dir', config.pages_dir)
        if not isinstance(pages_dir, str) or not pages_dir.strip("/ "):
            raise ConfigError("Field 'pages_dir' must be a non-empty path", 'pages_dir')
        config.pages_dir = pages_dir.strip("/ ")

        extensions = config_dict.get('page_extensions', config.page_extensions)
        if (
            not isinstance(extensions, list)
            or not extensions
            or not all(isinstance(ext, str) and ext.startswith(".") for ext in extensions)
        ):
            raise ConfigError(
                "Field 'page_extensions' must be a non-empty list like ['.md']",
                'page_extensions'
            )
        config.page_extensions = list(extensions)

        version_file = config_dict.get('version_file', config.version_file)
        if not isinstance(version_file, str) or not version_file.strip():
            raise ConfigError("Field 'version_file' must be a non-empty path", 'version_file')
        config.version_file = version_file.strip()

        policy = config_dict.get('version_policy', config.version_policy.value)
        if not isinstance(policy, str) or policy not in cls.VERSION_POLICIES:
            raise ConfigError(
                f"Field 'version_policy' must be one of {', '.join(cls.VERSION_POLICIES)}, got {policy!r}",
                'version_policy'
            )
        config.version_policy = cls.VERSION_POLICIES[policy]

        release_notes = config_dict.get('release_notes', config.release_notes)
        if not isinstance(release_notes, bool):
            raise ConfigError(
                f"Field 'release_notes' must be a boolean, got {type(release_notes).__name__}",
                'release_notes'
            )
        config.release_notes = release_notes

        max_workers = config_dict.get('max_workers', config.max_workers)
        if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
            raise ConfigError("Field 'max_workers' must be a positive integer", 'max_workers')
        config.max_workers = max_workers

        return config
