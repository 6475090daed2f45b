# release_deploy/api/__init__.py
"""API layer for release-deploy"""

# Exceptions load first, every other layer imports them from here
from .exceptions import (
    ReleaseDeployError,
    ConfigurationError,
    StorageError,
    ProcessError,
    PromotionError,
    LockError,
    HookError,
    UserCancelledError,
)
from .deployer import Deployer, deploy, rollback

__all__ = [
    # Main classes
    "Deployer",

    # Convenience functions
    "deploy",
    "rollback",

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
