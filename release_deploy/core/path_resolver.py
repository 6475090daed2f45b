"""Path resolution module for release-deploy"""

import os
from pathlib import Path
from typing import Optional, Union

from ..constants import (
    LIVE_ALIAS_NAME,
    LIVE_ALIAS_TEMP_NAME,
    RELEASES_DIR,
    REPO_DIR,
    SHARED_DIR,
)
from ..models.config import PathsConfig


def normalize_dir(path: Union[str, Path]) -> str:
    """Return a directory path ending in exactly one separator"""
    text = str(path).rstrip(os.sep)
    return text + os.sep


class PathResolver:
    """Derives the canonical roots of a deploy target

    Values are computed once at construction. A pipeline run keeps one
    resolver for its whole duration.
    """

    def __init__(self, paths: Optional[PathsConfig], base_dir: Union[str, Path]):
        """Initialize path resolver

        Args:
            paths: Configured paths, unset entries use defaults
            base_dir: Directory relative paths resolve against, and the default Root
        """
        paths = paths or PathsConfig()
        self.base_dir = Path(base_dir).resolve()

        self._root = self._resolve(paths.root, self.base_dir)
        root = Path(self._root)
        self._repo = self._resolve(paths.repo, root / REPO_DIR)
        self._releases = self._resolve(paths.releases, root / RELEASES_DIR)
        self._shared = self._resolve(paths.shared, root / SHARED_DIR)

    def _resolve(self, configured: Optional[str], default: Path) -> str:
        if not configured:
            return normalize_dir(default)

        path = Path(os.path.expanduser(configured))
        if not path.is_absolute():
            path = self.base_dir / path
        return normalize_dir(os.path.normpath(str(path)))

    def root(self) -> str:
        """Deploy root, holds the live alias"""
        return self._root

    def repo_path(self) -> str:
        """Working checkout of the source repository"""
        return self._repo

    def releases_path(self) -> str:
        return self._releases

    def shared_path(self) -> str:
        return self._shared

    def release_path(self, release_id: str) -> str:
        """Directory of one release"""
        return normalize_dir(self._releases + release_id)

    def live_alias_path(self, alias_name: str = LIVE_ALIAS_NAME) -> str:
        """The live alias symlink, without a trailing separator"""
        return self._root + alias_name

    def live_alias_temp_path(self) -> str:
        return self._root + LIVE_ALIAS_TEMP_NAME
