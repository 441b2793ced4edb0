"""Main CLI entry point for the svlmd command.

This module provides the Typer application behind `svlmd init` and
`svlmd sync`.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from svlmd import __version__
from svlmd.cli.config import ConfigLoader, find_project_root
from svlmd.cli.errors import InitError
from svlmd.cli.init_command import InitCommand
from svlmd.cli.models import ExitCode
from svlmd.cli.output import OutputHandler
from svlmd.cli.sync_command import SyncCommand

app = typer.Typer(
    name="svlmd",
    help="""Version and contributor metadata sync for a shared Logseq graph.

QUICK START:
  svlmd init              # Record who you are
  svlmd sync              # Stamp changed pages and advance the ledger
  svlmd sync --version    # Only record changed pages on the release page""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=False,
)

# Module logger
logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'svlmd' namespace logger to avoid affecting
    third-party libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:  # verbosity >= 2
        level = logging.DEBUG

    app_logger = logging.getLogger("svlmd")
    app_logger.setLevel(level)
    # Repeated invocations in one process must not stack handlers
    app_logger.handlers.clear()

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"svlmd_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _run_init(root: str, name: str, email: Optional[str], output: OutputHandler) -> None:
    """Run initialization and report the outcome.

    Raises:
        typer.Exit: With GENERAL_ERROR if initialization fails
    """
    init_cmd = InitCommand(root)
    try:
        init_cmd.run(name=name, email=email)
    except InitError as e:
        logger.error(f"Initialization failed: {e}")
        output.error(f"Initialization failed: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if init_cmd.replaced_existing:
        output.warning(f"Existing configuration overwritten: {init_cmd.config_path}")
    output.success(f"Contributor '{name}' configured")
    output.info(f"  Config file: {init_cmd.config_path}")
    if init_cmd.contributor_page:
        output.info(f"  Created page: {init_cmd.contributor_page}")


@app.command("init")
def init_command(
    name: str = typer.Option(
        ...,
        "--name",
        prompt="Contributor name",
        help="Your display name (also the title of your contributor page)",
    ),
    email: str = typer.Option(
        "",
        "--email",
        prompt="Contributor e-mail (optional)",
        help="Your e-mail address, used as your stable identifier",
    ),
    root: Optional[str] = typer.Option(
        None,
        "--root",
        help="Project root (defaults to the nearest directory with .svlmd/ or pages/)",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v info, -vv debug)",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
) -> None:
    """Record the contributor for this checkout and create their page."""
    _configure_logging(verbose)
    output = OutputHandler(verbosity=verbose, no_color=no_color)

    project_root = os.path.abspath(root) if root else find_project_root()
    _run_init(project_root, name, email or None, output)
    raise typer.Exit(ExitCode.SUCCESS)


@app.command("sync")
def sync_command(
    version_only: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Only record changed pages on the release page (page properties and ledger untouched)",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v info, -vv debug)",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    root: Optional[str] = typer.Option(
        None,
        "--root",
        help="Project root (defaults to the nearest directory with .svlmd/ or pages/)",
    ),
) -> None:
    """Stamp changed pages with version and contributor metadata.

    \b
    EXIT CODES:
      0  success (per-page failures are reported as warnings)
      1  unexpected error
      2  configuration error
      3  version control error
      4  ledger error
      5  every changed page failed, ledger not advanced
    """
    _configure_logging(verbose, logdir)
    output = OutputHandler(verbosity=verbose, no_color=no_color)

    project_root = os.path.abspath(root) if root else find_project_root()

    if not os.path.exists(ConfigLoader.config_path(project_root)):
        output.print("No configuration found - running init first.")
        name = typer.prompt("Contributor name")
        email = typer.prompt("Contributor e-mail (optional)", default="", show_default=False)
        _run_init(project_root, name, email or None, output)

    exit_code = SyncCommand(project_root, output_handler=output).run(version_only=version_only)
    raise typer.Exit(exit_code)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    show_version: bool = typer.Option(
        False,
        "--app-version",
        help="Show the svlmd version and exit",
        is_eager=True,
    ),
) -> None:
    """Version and contributor metadata sync for a shared Logseq graph."""
    if show_version:
        typer.echo(f"svlmd version {__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m svlmd.cli.main
if __name__ == "__main__":
    main()
