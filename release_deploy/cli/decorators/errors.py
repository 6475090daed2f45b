"""Error reporting decorator for CLI commands"""

import functools
import sys
from typing import Callable

import click

from ..utils.output import show_error
from ...api.exceptions import ReleaseDeployError
from ...constants import EXIT_INTERRUPTED
from ...utils.output import console


def handle_errors(func: Callable) -> Callable:
    """
    Turn release-deploy errors into an error panel and an exit status

    The exit status comes from the error code of the exception, an
    interrupt exits with 130. Anything else propagates to ``main``.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ReleaseDeployError as e:
            ctx = click.get_current_context(silent=True)
            debug = bool(ctx and ctx.obj and getattr(ctx.obj, 'debug', False))
            state = getattr(e, 'pipeline_state', None)
            show_error(e, state=state.value if state is not None else None, debug=debug)
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            sys.exit(EXIT_INTERRUPTED)

    return wrapper
