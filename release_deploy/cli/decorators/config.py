"""Configuration file decorators for CLI commands"""

from functools import wraps
from typing import Callable

import click

from ..utils.output import console
from ...constants import EMOJI_ERROR


def require_config(func: Callable) -> Callable:
    """Decorator that stops the command when no configuration file exists

    The command receives the click context first, with ``ctx.obj``
    holding a ConfigService for the located file.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()
        service = ctx.obj.config_service

        if not service.exists():
            console.print(
                f"{EMOJI_ERROR} Configuration file not found: {service.config_path}\n"
                f"Run 'release-deploy config init' to create one."
            )
            ctx.exit(2)

        return func(ctx, *args, **kwargs)

    return wrapper


def ensure_no_config(func: Callable) -> Callable:
    """Decorator that refuses to overwrite an existing configuration

    ``--force`` on the command lifts the check.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()
        service = ctx.obj.config_service

        if service.exists() and not kwargs.get('force'):
            console.print(
                f"{EMOJI_ERROR} {service.config_path} already exists.\n"
                f"Use --force to overwrite it."
            )
            ctx.exit(1)

        return func(ctx, *args, **kwargs)

    return wrapper
