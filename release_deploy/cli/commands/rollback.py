"""Rollback command implementation"""

import click

from ..decorators import handle_errors, require_config
from ..utils.interactive import ReleasePrompter
from ..utils.output import format_rollback_result
from ...core.release_store import ReleaseStore
from ...services.deploy_service import DeployPipeline
from ...utils.output import console


@click.command()
@click.option('--release', 'release_id', help='Release id to restore')
@click.option('--reap', is_flag=True, help='Delete the release rolled back from')
@click.option('-n', '--no-interaction', is_flag=True,
              help='Restore the newest earlier release without prompting')
@handle_errors
@require_config
def rollback(ctx, release_id, reap, no_interaction):
    """Point the live alias back at an earlier release

    Without options the releases are listed newest first and you choose
    one, 0 cancels. The release rolled back from stays on disk unless
    --reap is given.

    Examples:

        # Choose interactively
        release-deploy rollback

        # Restore a specific release and delete the current one
        release-deploy rollback --release 2024-01-19-16-02-45 --reap
    """
    service = ctx.obj.config_service
    chooser = None
    if release_id is None and not no_interaction:
        live = ReleaseStore(service.path_resolver()).live_target()
        chooser = ReleasePrompter(console, live=live)

    pipeline = DeployPipeline(service)
    result = pipeline.rollback(chooser=chooser, release_id=release_id, reap=reap)
    format_rollback_result(result)
