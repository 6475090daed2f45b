"""Configuration management commands"""

import click
from rich.prompt import Confirm

from ..decorators import handle_errors, require_config, ensure_no_config
from ..utils.interactive import ConfigWizard
from ..utils.output import config_table
from ...api.exceptions import ReleaseDeployError, UserCancelledError
from ...constants import EMOJI_SUCCESS, EMOJI_ERROR, EMOJI_WARNING
from ...core.directory_structure import DirectoryStructure
from ...models.config import DeployConfig, PathsConfig, GitConfig
from ...plugins.base import HookPoint
from ...plugins.loader import load_all_hooks
from ...utils.lock import DeployLock
from ...utils.output import console


@click.group()
def config():
    """Manage the deploy configuration file"""
    pass


@config.command()
@click.option('--root', help='Deploy root (default: the configuration file directory)')
@click.option('--repo', 'repo_url', help='Git remote URL')
@click.option('--remote', default='origin', show_default=True, help='Git remote name')
@click.option('--branch', default='master', show_default=True, help='Default branch')
@click.option('--no-structure', is_flag=True, help='Do not create repo/, releases/ and shared/')
@click.option('--force', is_flag=True, help='Overwrite an existing configuration file')
@handle_errors
@ensure_no_config
def init(ctx, root, repo_url, remote, branch, no_structure, force):
    """Write a default configuration file and the directory layout

    Examples:

        release-deploy config init --repo git@example.com:team/app.git

        release-deploy -c /srv/app/release-deploy.yaml config init --root /srv/app
    """
    service = ctx.obj.config_service
    initial = DeployConfig(
        paths=PathsConfig(root=root),
        git=GitConfig(repo=repo_url, remote=remote, branch=branch),
    )
    service.config_path.parent.mkdir(parents=True, exist_ok=True)
    with DeployLock(service.config_path):
        service.initialize(initial, overwrite=force)
        console.print(f"{EMOJI_SUCCESS} Configuration written to {service.config_path}")

        if not no_structure:
            created = DirectoryStructure(service.path_resolver()).create()
            for path in created:
                console.print(f"  Created {path}")

    if not repo_url:
        console.print(f"{EMOJI_WARNING} Git.Repo is empty, set it with "
                      f"'release-deploy config set Git.Repo <url>'")


@config.command()
@handle_errors
@require_config
def show(ctx):
    """Show the current configuration"""
    service = ctx.obj.config_service
    console.print(config_table(service.rows(), str(service.config_path)))


@config.command('set')
@click.argument('key')
@click.argument('value')
@handle_errors
@require_config
def set_value(ctx, key, value):
    """Set a value, e.g. Environment.MaxReleases 10 or Chown.Pre.Group www-data

    An empty string clears optional values.
    """
    service = ctx.obj.config_service
    with DeployLock(service.config_path):
        service.load()
        service.set_value(key, value)
        service.save()
    console.print(f"{EMOJI_SUCCESS} {key} updated")


@config.command('add')
@click.argument('key')
@click.argument('value')
@handle_errors
@require_config
def add_value(ctx, key, value):
    """Append to a list, e.g. Shared config/db.yml or Processes.Deploy.Post lifecycle-scripts"""
    service = ctx.obj.config_service
    with DeployLock(service.config_path):
        service.load()
        changed = service.add_value(key, value)
        if changed:
            service.save()

    if changed:
        console.print(f"{EMOJI_SUCCESS} Added {value} to {key}")
    else:
        console.print(f"{EMOJI_WARNING} {value} is already in {key}")


@config.command('remove')
@click.argument('key')
@click.argument('value')
@handle_errors
@require_config
def remove_value(ctx, key, value):
    """Remove a value from a list"""
    service = ctx.obj.config_service
    with DeployLock(service.config_path):
        service.load()
        changed = service.remove_value(key, value)
        if changed:
            service.save()

    if changed:
        console.print(f"{EMOJI_SUCCESS} Removed {value} from {key}")
    else:
        console.print(f"{EMOJI_WARNING} {value} is not in {key}")


@config.command()
@handle_errors
@require_config
def edit(ctx):
    """Edit the configuration interactively"""
    service = ctx.obj.config_service
    with DeployLock(service.config_path):
        config = service.load()
        registry = load_all_hooks(config.plugins)
        ConfigWizard(service, registry.names(), console).run()

        console.print()
        console.print(config_table(service.rows(), str(service.config_path)))
        try:
            save = Confirm.ask("\nSave configuration?", default=True, console=console)
        except EOFError as e:
            raise UserCancelledError() from e
        if save:
            service.save()
            console.print(f"{EMOJI_SUCCESS} Configuration saved")
        else:
            console.print(f"{EMOJI_WARNING} Changes discarded")


@config.command()
@click.option('--fix', is_flag=True, help='Create missing directories')
@handle_errors
@require_config
def check(ctx, fix):
    """Check the configuration, the directory layout and hook names"""
    service = ctx.obj.config_service
    config = service.load()
    problems = 0

    structure = DirectoryStructure(service.path_resolver())
    if fix:
        for path in structure.create():
            console.print(f"  Created {path}")
    for name, path in structure.directories().items():
        if name in structure.missing():
            console.print(f"{EMOJI_ERROR} {name}: {path} is missing")
            problems += 1
        else:
            console.print(f"{EMOJI_SUCCESS} {name}: {path}")

    if not config.git.repo:
        console.print(f"{EMOJI_WARNING} Git.Repo is not set")

    registry = load_all_hooks(config.plugins)
    for hook_point in HookPoint.all():
        for name in config.processes.get(hook_point.stage, hook_point.timing):
            try:
                registry.resolve(name)
            except ReleaseDeployError as e:
                console.print(f"{EMOJI_ERROR} Processes.{hook_point.stage.value}."
                              f"{hook_point.timing.value}: {e}")
                problems += 1

    if problems:
        console.print(f"\n{EMOJI_ERROR} {problems} problem(s) found")
        ctx.exit(1)
    console.print(f"\n{EMOJI_SUCCESS} Configuration is valid")
