"""Release listing command"""

import click

from ..decorators import handle_errors, require_config
from ..utils.output import releases_table
from ...core.release_store import ReleaseStore
from ...constants import EMOJI_WARNING
from ...utils.output import console


@click.command()
@handle_errors
@require_config
def releases(ctx):
    """List releases on disk, newest first"""
    service = ctx.obj.config_service
    store = ReleaseStore(service.path_resolver())
    found = store.list()

    if not found:
        console.print(f"{EMOJI_WARNING} No releases found in {store.path_resolver.releases_path()}")
        return

    console.print(releases_table(found, current=service.config.current, live=store.live_target()))
