"""Release Deploy - timestamped release deployments with atomic promotion.

This tool pulls a source tree from a git remote, copies it into a
timestamped release directory, prepares it (permissions, shared files,
cleanup, hooks), swaps the live symlink to it and retires old releases.
"""

from .__version__ import __version__, __version_info__, __author__, __license__

# Exceptions
from .api.exceptions import (
    ReleaseDeployError,
    ConfigurationError,
    StorageError,
    ProcessError,
    PromotionError,
    LockError,
    HookError,
    UserCancelledError,
)

# Core API
from .api.deployer import Deployer, deploy, rollback

# Data models
from .models.config import DeployConfig
from .models.release import Release, DeployResult, RollbackResult

# Hooks
from .plugins.base import Hook, HookContext, HookPoint, register_hook

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "__author__",
    "__license__",

    # Main classes
    "Deployer",

    # Core API functions
    "deploy",
    "rollback",

    # Data models
    "DeployConfig",
    "Release",
    "DeployResult",
    "RollbackResult",

    # Hooks
    "Hook",
    "HookContext",
    "HookPoint",
    "register_hook",

    # Exceptions
    "ReleaseDeployError",
    "ConfigurationError",
    "StorageError",
    "ProcessError",
    "PromotionError",
    "LockError",
    "HookError",
    "UserCancelledError",
]
