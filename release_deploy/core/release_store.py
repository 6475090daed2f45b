# release_deploy/core/release_store.py
"""Inventory of release directories on disk"""

import logging
import os
from typing import Iterable, List, Optional, Set, Union

from ..api.exceptions import StorageError
from ..models.release import Release, RetentionPolicy
from .path_resolver import PathResolver

logger = logging.getLogger(__name__)


class ReleaseStore:
    """Enumerates, names and ranks releases under the releases root"""

    def __init__(self, path_resolver: PathResolver):
        self.path_resolver = path_resolver

    def list(self) -> List[Release]:
        """
        List every release, newest first

        Dot entries and anything that is not a directory are skipped.

        Returns:
            Releases sorted by id, descending

        Raises:
            StorageError: Releases root cannot be read
        """
        releases_path = self.path_resolver.releases_path()
        try:
            with os.scandir(releases_path) as entries:
                names = [
                    entry.name for entry in entries
                    if not entry.name.startswith(".") and entry.is_dir()
                ]
        except OSError as e:
            raise StorageError(
                f"Cannot read releases directory {releases_path}: {e.strerror or e}",
                releases_path
            ) from e

        return [self.get(name) for name in sorted(names, reverse=True)]

    def find_stale(self,
                   policy: RetentionPolicy,
                   protect: Union[str, Iterable[str], None] = None) -> List[Release]:
        """
        Releases that fall outside the retention window

        The newest ``policy.max_releases`` releases are kept. Any protected
        release is never returned, wherever it sits in the listing.

        Args:
            policy: Retention policy
            protect: Release id or ids that must survive

        Returns:
            Stale releases, newest first (empty when nothing exceeds the window)
        """
        protected = self._protected_ids(protect)
        releases = self.list()
        if len(releases) <= policy.max_releases:
            return []

        stale = []
        for release in releases[policy.max_releases:]:
            if release.id in protected:
                logger.info("Keeping protected release %s outside the retention window", release.id)
                continue
            stale.append(release)
        return stale

    def exists(self, release_id: str) -> bool:
        if not release_id or release_id.startswith(".") or os.sep in release_id:
            return False
        return os.path.isdir(self.path_for(release_id))

    def path_for(self, release_id: str) -> str:
        return self.path_resolver.release_path(release_id)

    def get(self, release_id: str) -> Release:
        return Release(id=release_id, path=self.path_for(release_id))

    def live_target(self) -> Optional[str]:
        """Id of the release the live alias points at, if it points into the releases root"""
        alias = self.path_resolver.live_alias_path()
        if not os.path.islink(alias):
            return None

        target = os.readlink(alias)
        if not os.path.isabs(target):
            target = os.path.join(self.path_resolver.root(), target)
        target = os.path.normpath(target)

        parent, name = os.path.split(target)
        releases_root = os.path.normpath(self.path_resolver.releases_path())
        if parent != releases_root:
            return None
        return name

    @staticmethod
    def _protected_ids(protect: Union[str, Iterable[str], None]) -> Set[str]:
        if protect is None:
            return set()
        if isinstance(protect, str):
            return {protect}
        return {release_id for release_id in protect if release_id}
