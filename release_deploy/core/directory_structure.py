"""Deploy root directory layout"""

import logging
import os
from typing import Dict, List

from ..api.exceptions import StorageError
from ..constants import MSG_STRUCTURE_INVALID
from .path_resolver import PathResolver

logger = logging.getLogger(__name__)


class DirectoryStructure:
    """Checks and creates Root, Repo, Releases and Shared"""

    def __init__(self, path_resolver: PathResolver):
        self.path_resolver = path_resolver

    def directories(self) -> Dict[str, str]:
        return {
            "Root": self.path_resolver.root(),
            "Repo": self.path_resolver.repo_path(),
            "Releases": self.path_resolver.releases_path(),
            "Shared": self.path_resolver.shared_path(),
        }

    def missing(self) -> List[str]:
        """Names of the directories that do not exist"""
        return [name for name, path in self.directories().items() if not os.path.isdir(path)]

    def check(self) -> None:
        """
        Verify the layout before anything is changed

        Raises:
            StorageError: Root is missing or a file, or a sub directory is missing
        """
        root = self.path_resolver.root()
        if not os.path.isdir(root):
            raise StorageError(
                f"The root path {root} either does not exist or points to a file. "
                f"{MSG_STRUCTURE_INVALID}",
                root
            )

        missing = self.missing()
        if missing:
            raise StorageError(f"Missing {', '.join(missing)}. {MSG_STRUCTURE_INVALID}", root)

    def create(self) -> List[str]:
        """
        Create every missing directory

        Returns:
            Paths that were created

        Raises:
            StorageError: A path exists as a file or cannot be created
        """
        created = []
        for name, path in self.directories().items():
            if os.path.isdir(path):
                continue
            if os.path.lexists(path):
                raise StorageError(f"The {name} path {path} points to a file", path)
            try:
                os.makedirs(path, exist_ok=True)
            except OSError as e:
                raise StorageError(f"The directory {path} could not be created: {e}", path) from e
            logger.info("Created %s directory %s", name, path)
            created.append(path)
        return created
