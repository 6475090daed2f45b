# release_deploy/core/source_fetcher.py
"""Keeps the working checkout up to date"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

from ..api.exceptions import ConfigurationError
from ..models.config import DeployConfig
from ..utils import output
from ..utils.git_utils import (
    is_git_repository,
    list_remote_branches,
    list_remotes,
    list_tags,
    split_remote_branch,
)
from ..utils.process_utils import CommandRunner
from .path_resolver import PathResolver

logger = logging.getLogger(__name__)


class RefKind(Enum):
    TAG = "tag"
    BRANCH = "branch"
    DEFAULT = "default"


@dataclass(frozen=True)
class RefSelection:
    """The ref a deploy checks out"""
    kind: RefKind
    name: Optional[str] = None

    @classmethod
    def tag(cls, name: str) -> 'RefSelection':
        return cls(RefKind.TAG, name)

    @classmethod
    def branch(cls, name: str) -> 'RefSelection':
        """A ``remote/branch`` reference"""
        return cls(RefKind.BRANCH, name)

    @classmethod
    def default(cls) -> 'RefSelection':
        return cls(RefKind.DEFAULT)

    def describe(self) -> str:
        if self.kind is RefKind.DEFAULT:
            return "default branch"
        return f"{self.kind.value} {self.name}"


# Called after the fetch to pick a ref, e.g. by prompting the operator
RefChooser = Callable[['SourceFetcher'], RefSelection]


class SourceFetcher:
    """Initializes, fetches and checks out the repository checkout"""

    def __init__(self, config: DeployConfig, path_resolver: PathResolver, runner: CommandRunner):
        self.config = config
        self.path_resolver = path_resolver
        self.runner = runner

    @property
    def repo_path(self) -> str:
        return self.path_resolver.repo_path()

    def ensure(self,
               repo_path: Optional[str] = None,
               remote_url: Optional[str] = None,
               remote_name: Optional[str] = None) -> None:
        """
        Make sure the checkout exists and has its remote registered

        Args:
            repo_path: Checkout directory, defaults to Paths.Repo
            remote_url: Remote URL, defaults to Git.Repo
            remote_name: Remote name, defaults to Git.Remote

        Raises:
            ConfigurationError: The remote is missing and no URL is configured
        """
        repo_path = repo_path or self.repo_path
        remote_url = remote_url or self.config.git.repo
        remote_name = remote_name or self.config.git.remote

        if not os.path.isdir(repo_path):
            self.runner.run(["mkdir", "-p", repo_path])

        if not is_git_repository(repo_path):
            output.step(f"Initializing repository in {repo_path}")
            self.runner.run(["git", "init"], cwd=repo_path)

        if remote_name in list_remotes(self.runner, repo_path):
            return

        if not remote_url:
            raise ConfigurationError(
                f"Remote '{remote_name}' is not registered and Git.Repo is not configured"
            )
        output.step(f"Adding remote {remote_name}")
        self.runner.run(["git", "remote", "add", remote_name, remote_url], cwd=repo_path)

    def fetch_and_checkout(self,
                           ref: Union[RefSelection, RefChooser, None] = None,
                           repo_path: Optional[str] = None) -> RefSelection:
        """
        Fetch all remotes and check out a ref

        The configured default branch is checked out first. A tag is then
        checked out directly, a ``remote/branch`` is pulled, and the default
        selection pulls the default branch from the configured remote.

        Args:
            ref: Selection, a chooser called after the fetch, or None for the default
            repo_path: Checkout directory, defaults to Paths.Repo

        Returns:
            The selection that was applied

        Raises:
            ConfigurationError: Malformed ``remote/branch``, raised before any command runs
            ProcessError: A git command failed
        """
        repo_path = repo_path or self.repo_path
        if ref is None:
            ref = RefSelection.default()
        if isinstance(ref, RefSelection):
            self._validate(ref)

        output.step("Fetching remotes")
        self.runner.run(["git", "fetch", "--all"], cwd=repo_path)
        self.runner.run(["git", "checkout", self.config.git.branch], cwd=repo_path)

        if not isinstance(ref, RefSelection):
            ref = ref(self)
            self._validate(ref)

        if ref.kind is RefKind.TAG:
            output.step(f"Checking out tag {ref.name}")
            self.runner.run(["git", "checkout", ref.name], cwd=repo_path)
        elif ref.kind is RefKind.BRANCH:
            remote, branch = split_remote_branch(ref.name)
            output.step(f"Pulling {remote}/{branch}")
            self.runner.run(["git", "pull", remote, branch], cwd=repo_path)
        else:
            output.step(f"Pulling {self.config.git.remote}/{self.config.git.branch}")
            self.runner.run(
                ["git", "pull", self.config.git.remote, self.config.git.branch],
                cwd=repo_path
            )

        logger.info("Checked out %s", ref.describe())
        return ref

    def available_tags(self) -> List[str]:
        """Newest tags, filtered by Git.TagFilter"""
        return list_tags(self.runner, self.repo_path, self.config.git.tag_filter)

    def available_branches(self) -> List[str]:
        return list_remote_branches(self.runner, self.repo_path)

    @staticmethod
    def _validate(ref: RefSelection) -> None:
        if ref.kind is RefKind.BRANCH:
            split_remote_branch(ref.name)
        elif ref.kind is RefKind.TAG and not (ref.name or "").strip():
            raise ConfigurationError("Tag name must not be empty")
