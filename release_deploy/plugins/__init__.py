# release_deploy/plugins/__init__.py
"""Extension hook system for release-deploy"""

from .base import (
    Hook,
    HookInfo,
    HookContext,
    HookPoint,
    HookRegistry,
    hook_registry,
    register_hook,
)
from .loader import HookLoader, load_all_hooks

__all__ = [
    # Base classes
    'Hook',
    'HookInfo',
    'HookContext',
    'HookPoint',
    'HookRegistry',

    # Global instance
    'hook_registry',
    'register_hook',

    # Loader
    'HookLoader',
    'load_all_hooks',
]
