"""Hook module loader"""

import importlib
import inspect
import logging
from typing import Iterable

from ..api.exceptions import ConfigurationError
from .base import Hook, HookRegistry

BUILTIN_MODULES = [
    'release_deploy.plugins.builtin.hooks',
]


class HookLoader:
    """Imports modules that provide hooks

    A module registers its hooks with ``@register_hook`` when imported.
    Hook subclasses that set a ``name`` attribute but were not decorated
    are registered by the loader.
    """

    def __init__(self, registry: HookRegistry):
        """
        Initialize hook loader

        Args:
            registry: Registry hooks are added to
        """
        self.registry = registry
        self.logger = logging.getLogger("HookLoader")
        self._loaded_modules = set()

    def load_builtin_hooks(self) -> int:
        """
        Load all built-in hooks

        Returns:
            Number of hooks registered
        """
        return sum(self.load_from_module(name) for name in BUILTIN_MODULES)

    def load_from_module(self, module_name: str) -> int:
        """
        Load hooks from a Python module

        Args:
            module_name: Fully qualified module name

        Returns:
            Number of hooks registered

        Raises:
            ConfigurationError: The module cannot be imported
        """
        if module_name in self._loaded_modules:
            self.logger.debug(f"Module {module_name} already loaded")
            return 0

        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise ConfigurationError(f"Cannot import hook module {module_name}: {e}") from e

        count = self._register_from_module(module)
        self._loaded_modules.add(module_name)
        return count

    def load_modules(self, module_names: Iterable[str]) -> int:
        """Load every configured Plugins module"""
        return sum(self.load_from_module(name) for name in module_names)

    def _register_from_module(self, module) -> int:
        count = 0
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if (issubclass(obj, Hook) and
                    obj is not Hook and
                    not inspect.isabstract(obj) and
                    obj.name):
                if not self.registry.is_registered(obj.name):
                    self.registry.register(obj.name, obj)
                count += 1
        return count


def load_all_hooks(module_names: Iterable[str] = (), registry: HookRegistry = None) -> HookRegistry:
    """
    Load built-in hooks plus the configured Plugins modules

    Args:
        module_names: Importable module names
        registry: Registry to fill (uses the global one if not provided)

    Returns:
        The registry
    """
    from .base import hook_registry

    registry = registry or hook_registry
    loader = HookLoader(registry)
    loader.load_builtin_hooks()
    loader.load_modules(module_names)
    return registry
