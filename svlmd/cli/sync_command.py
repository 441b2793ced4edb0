"""Sync command orchestration for CLI.

This module provides the SyncCommand class that wires the configuration,
the contributor registry and the SyncEngine together for `svlmd sync`, and
translates the engine's outcome and exceptions into exit codes.
"""

import logging
import os
from typing import Optional

from svlmd.cli.config import ConfigLoader
from svlmd.cli.errors import CLIError, ConfigError, ConfigNotFoundError
from svlmd.cli.models import ExitCode, ProjectConfig
from svlmd.cli.output import OutputHandler
from svlmd.errors import SvlmdError
from svlmd.git_integration.errors import BackendError
from svlmd.git_integration.git_repository import GitRepository
from svlmd.pages.store import PageStore
from svlmd.sync.change_detector import ChangeDetector
from svlmd.sync.contributors import ContributorRegistry
from svlmd.sync.engine import SyncEngine
from svlmd.sync.errors import ContributorRegistryError, LedgerError, LedgerFilesystemError
from svlmd.sync.release_notes import ReleaseNotes

logger = logging.getLogger(__name__)


class SyncCommand:
    """Runs one sync for the CLI.

    The sync workflow:
        1. Load configuration (plus environment overrides) and the registry
        2. Build the SyncEngine for the project root
        3. Run it under a spinner
        4. Print the summary and return the exit code

    Example:
        >>> output = OutputHandler(verbosity=1)
        >>> sync_cmd = SyncCommand("/path/to/project", output_handler=output)
        >>> exit_code = sync_cmd.run()
        >>> sys.exit(exit_code)
    """

    def __init__(
        self,
        root: str,
        output_handler: Optional[OutputHandler] = None,
        config_path: Optional[str] = None,
        engine: Optional[SyncEngine] = None,
    ):
        """Initialize sync command.

        Args:
            root: Project root directory
            output_handler: OutputHandler for terminal output (optional)
            config_path: Path to configuration YAML file (optional)
            engine: Pre-built SyncEngine (optional, for testing)
        """
        self.root = os.path.abspath(root)
        self.output_handler = output_handler or OutputHandler()
        self.config_path = config_path or ConfigLoader.config_path(self.root)
        self.engine = engine

    def run(self, version_only: bool = False) -> ExitCode:
        """Execute the sync and translate the outcome to an exit code.

        Args:
            version_only: Only record changes on the release page

        Returns:
            ExitCode indicating success or specific failure type
        """
        try:
            if self.engine is None:
                self.engine = self._build_engine()

            message = "Recording release notes..." if version_only else "Syncing pages..."
            with self.output_handler.spinner(message):
                result = self.engine.run(version_only=version_only)

            self.output_handler.print_sync_summary(result, version_only=version_only)

            if not version_only and result.changed and not result.updated:
                return ExitCode.NO_PAGES_UPDATED
            return ExitCode.SUCCESS

        except (ConfigError, ConfigNotFoundError, ContributorRegistryError) as e:
            logger.error(f"Configuration error: {e}")
            self.output_handler.error(f"Configuration error: {e}")
            return ExitCode.CONFIG_ERROR

        except BackendError as e:
            logger.error(f"Version control error: {e}")
            self.output_handler.error(str(e))
            if e.git_output:
                self.output_handler.info(e.git_output)
            return ExitCode.BACKEND_ERROR

        except (LedgerError, LedgerFilesystemError) as e:
            logger.error(f"Ledger error: {e}")
            self.output_handler.error(str(e))
            self.output_handler.info("The previous ledger was left unchanged")
            return ExitCode.LEDGER_ERROR

        except (CLIError, SvlmdError) as e:
            logger.error(f"Sync error: {e}")
            self.output_handler.error(f"Error: {e}")
            return ExitCode.GENERAL_ERROR

        except Exception as e:
            logger.exception("Unexpected error during sync")
            self.output_handler.error(f"Unexpected error: {e}")
            return ExitCode.GENERAL_ERROR

    def load_config(self) -> ProjectConfig:
        """Load the configuration with environment overrides applied.

        Raises:
            ConfigNotFoundError: If the project has not been initialized
            ConfigError: If the configuration is invalid
        """
        logger.info(f"Loading configuration from {self.config_path}")
        config = ConfigLoader.load(self.config_path)
        return ConfigLoader.apply_environment(config, os.path.join(self.root, ".env"))

    def _build_engine(self) -> SyncEngine:
        config = self.load_config()
        contributor = ConfigLoader.require_contributor(config)

        registry = ContributorRegistry.load(
            os.path.join(self.root, ContributorRegistry.DEFAULT_REGISTRY_FILE)
        )
        logger.info(f"Loaded {len(registry)} registered contributor(s)")

        store = PageStore(self.root, config.pages_dir, config.page_extensions[0])
        repository = GitRepository(self.root)
        return SyncEngine(
            root=self.root,
            contributor_identifier=contributor.identifier,
            store=store,
            repository=repository,
            change_detector=ChangeDetector(repository, store, config.page_extensions),
            registry=registry,
            release_notes=ReleaseNotes(store, self.root, config.version_file),
            version_policy=config.version_policy,
            record_release_notes=config.release_notes,
            max_workers=config.max_workers,
        )
