"""Configuration data models"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..api.exceptions import ConfigurationError
from ..constants import (
    Stage,
    Timing,
    DEFAULT_BRANCH,
    DEFAULT_ENVIRONMENT_NAME,
    DEFAULT_MAX_RELEASES,
    DEFAULT_PROCESS_TIMEOUT,
    DEFAULT_REMOTE,
    DEFAULT_USE_SUDO,
)

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def as_bool(key: str, value: Any) -> bool:
    """Coerce a config value to bool or raise ConfigurationError"""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ConfigurationError(f"{key} must be a boolean, got {value!r}")


def as_int(key: str, value: Any) -> int:
    """Coerce a config value to int or raise ConfigurationError"""
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ConfigurationError(f"{key} must be an integer, got {value!r}")


def as_optional_str(key: str, value: Any) -> Optional[str]:
    """Coerce a scalar config value to a stripped string, empty means None"""
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise ConfigurationError(f"{key} must be a scalar value")
    text = str(value).strip()
    return text or None


def as_str_list(key: str, value: Any) -> List[str]:
    """Coerce a config value to an ordered, de-duplicated list of strings"""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError(f"{key} must be a list")

    items: List[str] = []
    for item in value:
        if item is None:
            continue
        text = str(item).strip()
        if text and text not in items:
            items.append(text)
    return items


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = data.get(key)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"{key} must be a mapping")
    return section


@dataclass
class EnvironmentConfig:
    """Environment settings"""

    name: str = DEFAULT_ENVIRONMENT_NAME
    current: Optional[str] = None
    max_releases: int = DEFAULT_MAX_RELEASES
    use_sudo: bool = DEFAULT_USE_SUDO
    process_timeout: int = DEFAULT_PROCESS_TIMEOUT

    def __post_init__(self):
        if self.max_releases < 1:
            raise ConfigurationError(
                f"Environment.MaxReleases must be at least 1, got {self.max_releases}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "Name": self.name,
            "Current": self.current,
            "MaxReleases": self.max_releases,
            "UseSudo": self.use_sudo,
            "ProcessTimeout": self.process_timeout,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EnvironmentConfig':
        """Create from dictionary"""
        return cls(
            name=as_optional_str("Environment.Name", data.get("Name")) or DEFAULT_ENVIRONMENT_NAME,
            current=as_optional_str("Environment.Current", data.get("Current")),
            max_releases=as_int(
                "Environment.MaxReleases", data.get("MaxReleases", DEFAULT_MAX_RELEASES)
            ),
            use_sudo=as_bool("Environment.UseSudo", data.get("UseSudo", DEFAULT_USE_SUDO)),
            process_timeout=as_int(
                "Environment.ProcessTimeout",
                data.get("ProcessTimeout", DEFAULT_PROCESS_TIMEOUT)
            ),
        )


@dataclass
class PathsConfig:
    """Configured filesystem roots (unset values fall back to defaults)"""

    root: Optional[str] = None
    repo: Optional[str] = None
    releases: Optional[str] = None
    shared: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, omitting unset paths"""
        data = {}
        for key, value in (("Root", self.root), ("Repo", self.repo),
                           ("Releases", self.releases), ("Shared", self.shared)):
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PathsConfig':
        """Create from dictionary"""
        return cls(
            root=as_optional_str("Paths.Root", data.get("Root")),
            repo=as_optional_str("Paths.Repo", data.get("Repo")),
            releases=as_optional_str("Paths.Releases", data.get("Releases")),
            shared=as_optional_str("Paths.Shared", data.get("Shared")),
        )


@dataclass
class GitConfig:
    """Source repository settings"""

    repo: Optional[str] = None
    remote: str = DEFAULT_REMOTE
    branch: str = DEFAULT_BRANCH
    tag_filter: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            "Repo": self.repo,
            "Remote": self.remote,
            "Branch": self.branch,
        }
        if self.tag_filter:
            data["TagFilter"] = self.tag_filter
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GitConfig':
        """Create from dictionary"""
        return cls(
            repo=as_optional_str("Git.Repo", data.get("Repo")),
            remote=as_optional_str("Git.Remote", data.get("Remote")) or DEFAULT_REMOTE,
            branch=as_optional_str("Git.Branch", data.get("Branch")) or DEFAULT_BRANCH,
            tag_filter=as_optional_str("Git.TagFilter", data.get("TagFilter")),
        )


@dataclass
class PermissionRule:
    """Ownership or mode change applied to paths relative to a release"""

    paths: List[str] = field(default_factory=list)
    group: Optional[str] = None
    permission: Optional[str] = None

    @property
    def value(self) -> Optional[str]:
        """The argument passed to chown or chmod"""
        return self.group if self.group is not None else self.permission


@dataclass
class PermissionRules:
    """Pre and Post rules for one command (chown or chmod)"""

    value_key: str
    pre: PermissionRule = field(default_factory=PermissionRule)
    post: PermissionRule = field(default_factory=PermissionRule)

    def rule(self, timing: Timing) -> PermissionRule:
        """Get the rule for a timing"""
        return self.pre if timing is Timing.PRE else self.post

    def set_value(self, timing: Timing, value: Optional[str]) -> None:
        """Set the group (chown) or permission (chmod) of a rule"""
        rule = self.rule(timing)
        if self.value_key == "Group":
            rule.group = value
        else:
            rule.permission = value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            timing.value: {
                self.value_key: self.rule(timing).value,
                "Paths": list(self.rule(timing).paths),
            }
            for timing in Timing
        }

    @classmethod
    def from_dict(cls, section: str, value_key: str, data: Dict[str, Any]) -> 'PermissionRules':
        """Create from dictionary"""
        rules = cls(value_key=value_key)
        for timing in Timing:
            key = f"{section}.{timing.value}"
            raw = _section(data, timing.value)
            value = as_optional_str(f"{key}.{value_key}", raw.get(value_key))
            rule = PermissionRule(paths=as_str_list(f"{key}.Paths", raw.get("Paths")))
            if value_key == "Group":
                rule.group = value
            else:
                rule.permission = value
            if timing is Timing.PRE:
                rules.pre = rule
            else:
                rules.post = rule
        return rules


@dataclass
class ProcessesConfig:
    """Hook names bound to each (stage, timing) slot"""

    slots: Dict[Stage, Dict[Timing, List[str]]] = field(
        default_factory=lambda: {stage: {timing: [] for timing in Timing} for stage in Stage}
    )

    def get(self, stage: Stage, timing: Timing) -> List[str]:
        """Hook names for a slot, in execution order"""
        return self.slots[stage][timing]

    def add(self, stage: Stage, timing: Timing, name: str) -> None:
        self.slots[stage][timing].append(name.strip())

    def remove(self, stage: Stage, timing: Timing, name: str) -> bool:
        hooks = self.slots[stage][timing]
        if name in hooks:
            hooks.remove(name)
            return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            stage.value: {timing.value: list(self.get(stage, timing)) for timing in Timing}
            for stage in Stage
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProcessesConfig':
        """Create from dictionary"""
        config = cls()
        for stage in Stage:
            stage_data = _section(data, stage.value)
            for timing in Timing:
                key = f"Processes.{stage.value}.{timing.value}"
                # Hook order is significant and repeats are allowed
                raw = stage_data.get(timing.value)
                if raw is None:
                    continue
                if not isinstance(raw, list):
                    raise ConfigurationError(f"{key} must be a list")
                config.slots[stage][timing] = [str(item).strip() for item in raw if item]
        return config


@dataclass
class DeployConfig:
    """Complete release-deploy configuration"""

    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    git: GitConfig = field(default_factory=GitConfig)
    shared: List[str] = field(default_factory=list)
    remove: List[str] = field(default_factory=list)
    chown: PermissionRules = field(default_factory=lambda: PermissionRules("Group"))
    chmod: PermissionRules = field(default_factory=lambda: PermissionRules("Permission"))
    processes: ProcessesConfig = field(default_factory=ProcessesConfig)
    plugins: List[str] = field(default_factory=list)
    hook_options: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def current(self) -> Optional[str]:
        """The CurrentPointer release id"""
        return self.environment.current

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            "Environment": self.environment.to_dict(),
            "Paths": self.paths.to_dict(),
            "Git": self.git.to_dict(),
            "Shared": list(self.shared),
            "Remove": list(self.remove),
            "Chown": self.chown.to_dict(),
            "Chmod": self.chmod.to_dict(),
            "Processes": self.processes.to_dict(),
        }
        if self.plugins:
            data["Plugins"] = list(self.plugins)
        if self.hook_options:
            data["HookOptions"] = dict(self.hook_options)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DeployConfig':
        """Create from the mapping under the Deploy root key"""
        if not isinstance(data, dict):
            raise ConfigurationError("Deploy configuration must be a mapping")

        git_section = data.get("Git")
        if git_section is None:
            git_section = data.get("GitHub")

        hook_options = _section(data, "HookOptions")
        for name, options in hook_options.items():
            if options is not None and not isinstance(options, dict):
                raise ConfigurationError(f"HookOptions.{name} must be a mapping")

        return cls(
            environment=EnvironmentConfig.from_dict(_section(data, "Environment")),
            paths=PathsConfig.from_dict(_section(data, "Paths")),
            git=GitConfig.from_dict(_section({"Git": git_section}, "Git")),
            shared=as_str_list("Shared", data.get("Shared")),
            remove=as_str_list("Remove", data.get("Remove")),
            chown=PermissionRules.from_dict("Chown", "Group", _section(data, "Chown")),
            chmod=PermissionRules.from_dict("Chmod", "Permission", _section(data, "Chmod")),
            processes=ProcessesConfig.from_dict(_section(data, "Processes")),
            plugins=as_str_list("Plugins", data.get("Plugins")),
            hook_options={name: dict(options or {}) for name, options in hook_options.items()},
        )
