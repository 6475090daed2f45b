# release_deploy/utils/__init__.py
"""Utility functions for release-deploy"""

from .process_utils import CommandRunner
from .lock import DeployLock
from .git_utils import (
    is_git_repository,
    list_remotes,
    list_tags,
    list_remote_branches,
    sort_tags,
    split_remote_branch,
)

__all__ = [
    # Process execution
    "CommandRunner",

    # Locking
    "DeployLock",

    # Git utilities
    "is_git_repository",
    "list_remotes",
    "list_tags",
    "list_remote_branches",
    "sort_tags",
    "split_remote_branch",
]
