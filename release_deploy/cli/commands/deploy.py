"""Deploy command implementation"""

import click

from ..decorators import handle_errors, require_config
from ..utils.interactive import RefPrompter
from ..utils.output import format_deploy_result
from ...core.source_fetcher import RefSelection
from ...services.deploy_service import DeployPipeline
from ...utils.output import console


@click.command()
@click.option('--tag', help='Deploy a tag')
@click.option('--branch', help='Deploy a remote branch (format: remote/branch)')
@click.option('--default', 'use_default', is_flag=True,
              help='Deploy Git.Branch from Git.Remote without prompting')
@click.option('-n', '--no-interaction', is_flag=True,
              help='Never prompt, deploy the default branch unless --tag or --branch is given')
@handle_errors
@require_config
def deploy(ctx, tag, branch, use_default, no_interaction):
    """Deploy a new release and make it live

    Without options the available tags and branches are listed after the
    fetch and you choose one. The live alias only changes once every
    earlier step has succeeded.

    Examples:

        # Choose a tag or branch interactively
        release-deploy deploy

        # Deploy a tag
        release-deploy deploy --tag v1.4.2

        # Deploy a branch
        release-deploy deploy --branch origin/hotfix

        # Unattended deploy of the configured branch
        release-deploy -c /srv/app/release-deploy.yaml deploy -n
    """
    selected = [option for option in (tag, branch, use_default) if option]
    if len(selected) > 1:
        raise click.UsageError("Use only one of --tag, --branch and --default")

    if tag:
        ref = RefSelection.tag(tag)
    elif branch:
        ref = RefSelection.branch(branch)
    elif use_default or no_interaction:
        ref = RefSelection.default()
    else:
        ref = RefPrompter(console)

    pipeline = DeployPipeline(ctx.obj.config_service)
    result = pipeline.run(ref)
    format_deploy_result(result)
