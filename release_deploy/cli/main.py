# release_deploy/cli/main.py
"""Main CLI entry point for release-deploy"""

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click
from rich.logging import RichHandler

from ..__version__ import __version__
from ..constants import APP_NAME, LOG_FORMAT, ENV_LOG_LEVEL, EXIT_INTERRUPTED
from ..services.config_service import ConfigService, locate_config
from ..utils.output import console

# Import all commands
from .commands import (
    deploy,
    rollback,
    releases,
    config,
)


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Setup logging configuration

    Args:
        verbose: Enable verbose output (INFO level)
        debug: Enable debug output (DEBUG level)
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.getLevelName(os.environ.get(ENV_LOG_LEVEL, "WARNING").upper())
        if not isinstance(level, int):
            level = logging.WARNING

    # Configure rich handler
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            RichHandler(
                console=console,
                show_time=debug,
                show_path=debug,
                rich_tracebacks=True,
                tracebacks_suppress=[click]
            )
        ]
    )


class Context:
    """CLI context object with lazy configuration loading

    The configuration file is only located when a command asks for the
    service, so ``--help`` works anywhere.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path_option = config_path
        self._config_service: Optional[ConfigService] = None
        self.verbose: bool = False
        self.debug: bool = False

    @property
    def config_path(self) -> Path:
        return self.config_service.config_path

    @property
    def config_service(self) -> ConfigService:
        """Get the configuration service (lazy loading)"""
        if self._config_service is None:
            self._config_service = ConfigService(locate_config(self.config_path_option))
            if self.debug:
                console.print(f"[dim]Configuration: {self._config_service.config_path}[/dim]")
        return self._config_service


@click.group(name=APP_NAME)
@click.option('-c', '--config', 'config_path', type=click.Path(dir_okay=False),
              help='Configuration file (default: $RELEASE_DEPLOY_CONFIG or ./release-deploy.yaml)')
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('-d', '--debug', is_flag=True, help='Enable debug output')
@click.option('-q', '--quiet', is_flag=True, help='Suppress all output except errors')
@click.version_option(__version__, prog_name=APP_NAME)
@click.pass_context
def cli(ctx, config_path, verbose, debug, quiet):
    """Release Deploy - timestamped releases with atomic promotion

    Each deploy pulls the configured git remote, copies the checkout into
    releases/<timestamp>/, links shared files, fixes permissions, runs
    hooks and then swaps the live alias to the new release. Old releases
    beyond Environment.MaxReleases are removed.

    Directory layout under Paths.Root:

        root/
        ├── current -> releases/2024-01-20-10-30-00/
        ├── repo/
        ├── releases/
        │   ├── 2024-01-20-10-30-00/
        │   └── 2024-01-19-16-02-45/
        └── shared/
    """
    if quiet:
        logging.disable(logging.CRITICAL)
    else:
        setup_logging(verbose=verbose, debug=debug)

    ctx.obj = Context(config_path)
    ctx.obj.verbose = verbose
    ctx.obj.debug = debug


# Register commands
cli.add_command(deploy.deploy)
cli.add_command(rollback.rollback)
cli.add_command(releases.releases)
cli.add_command(config.config)


def main():
    """Main entry point for the CLI application

    This function handles:
    - Keyboard interrupts
    - Unexpected exceptions with proper error display
    """
    try:
        cli(prog_name=APP_NAME)

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(EXIT_INTERRUPTED)

    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if '--debug' in sys.argv or '-d' in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
