# release_deploy/cli/commands/__init__.py
"""CLI commands"""

from . import deploy
from . import rollback
from . import releases
from . import config

__all__ = [
    "deploy",
    "rollback",
    "releases",
    "config",
]
