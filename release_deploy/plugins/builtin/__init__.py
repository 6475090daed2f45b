# release_deploy/plugins/builtin/__init__.py
"""Built-in hooks for release-deploy"""

from .hooks import LifecycleScriptsHook, ReleaseCommandHook

__all__ = [
    'LifecycleScriptsHook',
    'ReleaseCommandHook',
]
