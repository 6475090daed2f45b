"""Configuration management service"""

import copy
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from ..api.exceptions import ConfigurationError, StorageError
from ..constants import (
    Stage,
    Timing,
    CONFIG_BACKUP_SUFFIX,
    CONFIG_ROOT_KEY,
    DEFAULT_CONFIG_FILE,
    ENV_CONFIG_PATH,
)
from ..core.path_resolver import PathResolver
from ..models.config import DeployConfig, as_bool, as_int, as_optional_str

logger = logging.getLogger(__name__)

ENVIRONMENT_KEYS = ("Name", "MaxReleases", "UseSudo", "ProcessTimeout")
PATH_KEYS = ("Root", "Repo", "Releases", "Shared")
GIT_KEYS = ("Repo", "Remote", "Branch", "TagFilter")


def locate_config(explicit: Optional[Union[str, Path]] = None) -> Path:
    """
    Find the configuration file

    Args:
        explicit: Path given on the command line

    Returns:
        ``explicit``, else $RELEASE_DEPLOY_CONFIG, else ./release-deploy.yaml
    """
    if explicit:
        return Path(explicit).expanduser().resolve()

    from_env = os.environ.get(ENV_CONFIG_PATH)
    if from_env:
        return Path(from_env).expanduser().resolve()

    return (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()


def _parse_stage(value: str) -> Stage:
    for stage in Stage:
        if stage.value.lower() == value.strip().lower():
            return stage
    raise ConfigurationError(
        f"Unknown stage '{value}' (expected one of {', '.join(s.value for s in Stage)})"
    )


def _parse_timing(value: str) -> Timing:
    for timing in Timing:
        if timing.value.lower() == value.strip().lower():
            return timing
    raise ConfigurationError(f"Unknown timing '{value}' (expected Pre or Post)")


def _match_key(key: str, allowed: Tuple[str, ...], section: str) -> str:
    for candidate in allowed:
        if candidate.lower() == key.strip().lower():
            return candidate
    raise ConfigurationError(
        f"Unknown setting {section}.{key} (expected one of {', '.join(allowed)})"
    )


class ConfigService:
    """Owns the loaded configuration and every change made to it"""

    def __init__(self, config_path: Union[str, Path]):
        """Initialize config service

        Args:
            config_path: Path of the YAML configuration file
        """
        self.config_path = Path(config_path)
        self._config: Optional[DeployConfig] = None
        # Document as written, with $VAR references, and the model as loaded
        self._raw: Optional[Dict[str, Any]] = None
        self._loaded: Optional[Dict[str, Any]] = None

    @property
    def config(self) -> DeployConfig:
        """Get current configuration (lazy load)"""
        if self._config is None:
            self.load()
        return self._config

    @property
    def base_dir(self) -> Path:
        """Directory relative paths resolve against"""
        return self.config_path.parent

    @property
    def backup_path(self) -> Path:
        return self.config_path.with_name(self.config_path.name + CONFIG_BACKUP_SUFFIX)

    def exists(self) -> bool:
        return self.config_path.is_file()

    def load(self) -> DeployConfig:
        """Load configuration from file

        Returns:
            Loaded configuration

        Raises:
            ConfigurationError: File missing, unparsable, or without a Deploy root
        """
        if not self.config_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found: {self.config_path}. "
                f"Run 'release-deploy config init' to create one."
            )

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read {self.config_path}: {e}") from e

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(data, dict) or CONFIG_ROOT_KEY not in data:
            raise ConfigurationError(
                f"{self.config_path} has no '{CONFIG_ROOT_KEY}' root section"
            )

        raw = data[CONFIG_ROOT_KEY] or {}
        self._config = DeployConfig.from_dict(_expand_vars(raw))
        self._raw = copy.deepcopy(raw)
        self._loaded = copy.deepcopy(self._config.to_dict())
        logger.debug("Loaded configuration from %s", self.config_path)
        return self._config

    def save(self) -> None:
        """Save configuration to file, keeping a .bak copy of the previous one

        Values left unchanged since loading are written as they appeared in
        the file, so environment variable references survive a save.
        """
        if self._config is None:
            raise ConfigurationError("No configuration to save")

        try:
            if self.config_path.exists():
                shutil.copy2(self.config_path, self.backup_path)

            current = copy.deepcopy(self._config.to_dict())
            if self._raw is not None:
                document = _keep_unchanged(current, self._loaded, self._raw)
            else:
                document = current
            data = {CONFIG_ROOT_KEY: document}
            with open(self.config_path, 'w', encoding='utf-8') as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise StorageError(f"Cannot write {self.config_path}: {e}", str(self.config_path)) from e

        self._raw = copy.deepcopy(document)
        self._loaded = current
        logger.info("Configuration saved to %s", self.config_path)

    def initialize(self, config: Optional[DeployConfig] = None, overwrite: bool = False) -> DeployConfig:
        """Write a default configuration file

        Args:
            config: Configuration to write, defaults are used when omitted
            overwrite: Replace an existing file

        Raises:
            ConfigurationError: The file exists and overwrite is not set
        """
        if self.exists() and not overwrite:
            raise ConfigurationError(f"{self.config_path} already exists")

        self._config = config or DeployConfig()
        self._raw = None
        self._loaded = None
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.save()
        return self._config

    def path_resolver(self) -> PathResolver:
        """Path resolver for the loaded configuration"""
        return PathResolver(self.config.paths, self.base_dir)

    # Enumerated setters

    def set_current(self, release_id: Optional[str]) -> None:
        """Record the CurrentPointer"""
        self.config.environment.current = release_id

    def set_environment(self, key: str, value: Any) -> None:
        key = _match_key(key, ENVIRONMENT_KEYS, "Environment")
        environment = self.config.environment
        if key == "Name":
            environment.name = as_optional_str("Environment.Name", value) or environment.name
        elif key == "MaxReleases":
            max_releases = as_int("Environment.MaxReleases", value)
            if max_releases < 1:
                raise ConfigurationError("Environment.MaxReleases must be at least 1")
            environment.max_releases = max_releases
        elif key == "UseSudo":
            environment.use_sudo = as_bool("Environment.UseSudo", value)
        else:
            environment.process_timeout = as_int("Environment.ProcessTimeout", value)

    def set_path(self, key: str, value: Optional[str]) -> None:
        key = _match_key(key, PATH_KEYS, "Paths")
        setattr(self.config.paths, key.lower(), as_optional_str(f"Paths.{key}", value))

    def set_git(self, key: str, value: Optional[str]) -> None:
        key = _match_key(key, GIT_KEYS, "Git")
        value = as_optional_str(f"Git.{key}", value)
        git = self.config.git
        if key == "Repo":
            git.repo = value
        elif key == "TagFilter":
            git.tag_filter = value
        elif value is None:
            raise ConfigurationError(f"Git.{key} must not be empty")
        elif key == "Remote":
            git.remote = value
        else:
            git.branch = value

    def add_shared(self, path: str) -> bool:
        return self._add_unique(self.config.shared, path)

    def remove_shared(self, path: str) -> bool:
        return self._remove_item(self.config.shared, path)

    def add_remove(self, path: str) -> bool:
        return self._add_unique(self.config.remove, path)

    def remove_remove(self, path: str) -> bool:
        return self._remove_item(self.config.remove, path)

    def set_chown_group(self, timing: Timing, group: Optional[str]) -> None:
        self.config.chown.set_value(timing, as_optional_str("Chown.Group", group))

    def set_chmod_permission(self, timing: Timing, permission: Optional[str]) -> None:
        self.config.chmod.set_value(timing, as_optional_str("Chmod.Permission", permission))

    def add_chown_path(self, timing: Timing, path: str) -> bool:
        return self._add_unique(self.config.chown.rule(timing).paths, path)

    def remove_chown_path(self, timing: Timing, path: str) -> bool:
        return self._remove_item(self.config.chown.rule(timing).paths, path)

    def add_chmod_path(self, timing: Timing, path: str) -> bool:
        return self._add_unique(self.config.chmod.rule(timing).paths, path)

    def remove_chmod_path(self, timing: Timing, path: str) -> bool:
        return self._remove_item(self.config.chmod.rule(timing).paths, path)

    def add_process(self, stage: Stage, timing: Timing, name: str) -> bool:
        name = name.strip()
        if not name:
            return False
        self.config.processes.add(stage, timing, name)
        return True

    def remove_process(self, stage: Stage, timing: Timing, name: str) -> bool:
        return self.config.processes.remove(stage, timing, name.strip())

    # Dotted key access used by the config commands

    def set_value(self, key: str, value: Any) -> None:
        """Set a scalar by dotted key, e.g. ``Environment.MaxReleases``

        Raises:
            ConfigurationError: Unknown key or invalid value
        """
        parts = key.split(".")
        section = parts[0].lower()

        if len(parts) == 2 and section == "environment":
            self.set_environment(parts[1], value)
        elif len(parts) == 2 and section == "paths":
            self.set_path(parts[1], value)
        elif len(parts) == 2 and section in ("git", "github"):
            self.set_git(parts[1], value)
        elif len(parts) == 3 and section == "chown" and parts[2].lower() == "group":
            self.set_chown_group(_parse_timing(parts[1]), value)
        elif len(parts) == 3 and section == "chmod" and parts[2].lower() == "permission":
            self.set_chmod_permission(_parse_timing(parts[1]), value)
        else:
            raise ConfigurationError(f"Unknown setting: {key}")

    def add_value(self, key: str, value: str) -> bool:
        """Append to a list setting by dotted key

        Returns:
            False when the value was already present
        """
        return self._list_operation(key, value, add=True)

    def remove_value(self, key: str, value: str) -> bool:
        """Remove from a list setting by dotted key

        Returns:
            False when the value was not present
        """
        return self._list_operation(key, value, add=False)

    def _list_operation(self, key: str, value: str, add: bool) -> bool:
        parts = key.split(".")
        section = parts[0].lower()

        if len(parts) == 1 and section == "shared":
            return self.add_shared(value) if add else self.remove_shared(value)
        if len(parts) == 1 and section == "remove":
            return self.add_remove(value) if add else self.remove_remove(value)
        if len(parts) == 3 and section in ("chown", "chmod") and parts[2].lower() == "paths":
            timing = _parse_timing(parts[1])
            if section == "chown":
                return self.add_chown_path(timing, value) if add else self.remove_chown_path(timing, value)
            return self.add_chmod_path(timing, value) if add else self.remove_chmod_path(timing, value)
        if len(parts) == 3 and section == "processes":
            stage, timing = _parse_stage(parts[1]), _parse_timing(parts[2])
            return self.add_process(stage, timing, value) if add else self.remove_process(stage, timing, value)

        raise ConfigurationError(f"Unknown list setting: {key}")

    def rows(self) -> List[Tuple[str, str]]:
        """Flattened (key, value) pairs for display"""
        return list(_flatten(self.config.to_dict()))

    @staticmethod
    def _add_unique(items: List[str], value: str) -> bool:
        value = (value or "").strip()
        if not value or value in items:
            return False
        items.append(value)
        return True

    @staticmethod
    def _remove_item(items: List[str], value: str) -> bool:
        value = (value or "").strip()
        if value not in items:
            return False
        items.remove(value)
        return True


def _flatten(data: Dict[str, Any], prefix: str = ""):
    for key, value in data.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            yield from _flatten(value, name)
        elif isinstance(value, list):
            yield name, ", ".join(str(item) for item in value) if value else "-"
        elif value is None:
            yield name, "-"
        else:
            yield name, str(value)


def _expand_vars(value: Any) -> Any:
    """Expand $VAR and ${VAR} inside every string of a parsed document"""
    if isinstance(value, dict):
        return {key: _expand_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_vars(item) for item in value]
    if isinstance(value, str):
        return os.path.expandvars(value)
    return value


def _keep_unchanged(current: Any, loaded: Any, raw: Any) -> Any:
    """Merge the model to save with the document it was loaded from

    Where ``current`` still equals ``loaded`` the raw value is kept.
    """
    if isinstance(current, dict) and isinstance(loaded, dict) and isinstance(raw, dict):
        merged = {}
        for key, value in current.items():
            if key in loaded and key in raw:
                merged[key] = _keep_unchanged(value, loaded[key], raw[key])
            else:
                merged[key] = value
        return merged
    return raw if current == loaded else current
