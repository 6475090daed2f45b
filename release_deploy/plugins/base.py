# release_deploy/plugins/base.py
"""Extension hook base classes and registry"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..api.exceptions import ConfigurationError
from ..constants import Stage, Timing
from ..models.config import DeployConfig
from ..models.release import Release
from ..utils.process_utils import CommandRunner


@dataclass(frozen=True)
class HookPoint:
    """A (stage, timing) slot hooks are bound to"""
    stage: Stage
    timing: Timing

    @property
    def slot(self) -> str:
        return f"{self.stage.value}/{self.timing.value}"

    @classmethod
    def all(cls) -> List['HookPoint']:
        return [cls(stage, timing) for stage in Stage for timing in Timing]


@dataclass
class HookContext:
    """Context passed to hook execution"""
    hook_point: HookPoint
    config: DeployConfig
    release: Optional[Release] = None
    previous_release: Optional[str] = None
    root_path: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class HookInfo:
    """Hook metadata"""
    name: str
    description: str
    version: str = "1.0.0"


class Hook(ABC):
    """Base class for all extension hooks"""

    name: Optional[str] = None

    def __init__(self,
                 config: DeployConfig,
                 runner: CommandRunner,
                 options: Dict[str, Any] = None):
        """
        Initialize hook

        Args:
            config: Configuration of the current run
            runner: Command runner shared with the built-in stages
            options: HookOptions entry for this hook
        """
        self.config = config
        self.runner = runner
        self.options = options or {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def get_info(self) -> HookInfo:
        """Get hook information"""
        doc = (self.__class__.__doc__ or "").strip().splitlines()
        return HookInfo(
            name=self.name or self.__class__.__name__,
            description=doc[0] if doc else "",
        )

    @abstractmethod
    def execute(self, context: HookContext) -> None:
        """
        Run the hook

        Args:
            context: Slot, release and configuration of the current run
        """
        pass


HookFactory = Callable[[DeployConfig, CommandRunner, Dict[str, Any]], Hook]


class HookRegistry:
    """Maps hook names to their factories"""

    def __init__(self):
        self._factories: Dict[str, HookFactory] = {}
        self.logger = logging.getLogger("HookRegistry")

    def register(self, name: str, factory: HookFactory) -> None:
        """
        Register a hook factory

        Args:
            name: Name used in the Processes section
            factory: Hook class or callable returning a Hook
        """
        if name in self._factories and self._factories[name] is not factory:
            self.logger.warning(f"Hook {name} already registered, replacing")
        self._factories[name] = factory
        self.logger.debug(f"Registered hook: {name}")

    def unregister(self, name: str) -> None:
        self._factories.pop(name, None)

    def is_registered(self, name: str) -> bool:
        return name in self._factories

    def names(self) -> List[str]:
        return sorted(self._factories)

    def resolve(self, name: str) -> HookFactory:
        """
        Look up a hook factory

        Raises:
            ConfigurationError: No hook is registered under that name
        """
        factory = self._factories.get(name)
        if factory is None:
            known = ", ".join(self.names()) or "none"
            raise ConfigurationError(f"Unknown hook '{name}' (registered: {known})")
        return factory

    def resolve_all(self, names: List[str]) -> List[HookFactory]:
        """Resolve every name of a slot, failing before any hook is created"""
        return [self.resolve(name) for name in names]

    def create(self, name: str, config: DeployConfig, runner: CommandRunner) -> Hook:
        """Instantiate a hook with its HookOptions"""
        factory = self.resolve(name)
        return factory(config, runner, config.hook_options.get(name, {}))


# Global hook registry instance
hook_registry = HookRegistry()


def register_hook(name: str, registry: HookRegistry = None):
    """Class decorator registering a Hook subclass under a name"""

    def decorator(cls):
        cls.name = name
        (registry or hook_registry).register(name, cls)
        return cls

    return decorator
