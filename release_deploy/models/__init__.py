# release_deploy/models/__init__.py
"""Data models for release-deploy"""

from .config import (
    DeployConfig,
    EnvironmentConfig,
    PathsConfig,
    GitConfig,
    PermissionRule,
    PermissionRules,
    ProcessesConfig,
)
from .release import (
    Release,
    RetentionPolicy,
    PipelineState,
    DeployResult,
    RollbackResult,
    generate_release_id,
    is_release_id,
    parse_release_id,
    format_release_date,
)

__all__ = [
    # Config models
    "DeployConfig",
    "EnvironmentConfig",
    "PathsConfig",
    "GitConfig",
    "PermissionRule",
    "PermissionRules",
    "ProcessesConfig",

    # Release models
    "Release",
    "RetentionPolicy",
    "PipelineState",
    "DeployResult",
    "RollbackResult",

    # Release id helpers
    "generate_release_id",
    "is_release_id",
    "parse_release_id",
    "format_release_date",
]
