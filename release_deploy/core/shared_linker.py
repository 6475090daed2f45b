"""Links release-local files to the persistent shared store"""

import logging
import os
from typing import Iterable

from ..api.exceptions import ConfigurationError
from ..models.release import Release
from ..utils import output
from ..utils.process_utils import CommandRunner
from .path_resolver import PathResolver

logger = logging.getLogger(__name__)


class SharedLinker:
    """Replaces shared entries inside a release with symlinks into shared/

    The first release that carries an entry seeds the shared copy. When
    neither copy exists an empty placeholder is seeded instead.
    """

    def __init__(self, path_resolver: PathResolver, runner: CommandRunner):
        self.path_resolver = path_resolver
        self.runner = runner

    def link(self, release: Release, shared_list: Iterable[str]) -> None:
        """
        Link every shared entry of a release

        Args:
            release: Release being prepared
            shared_list: Paths relative to the release root

        Raises:
            ConfigurationError: A shared copy is still missing after seeding
        """
        for entry in shared_list:
            self._link_entry(release, entry.strip(os.sep))

    def _link_entry(self, release: Release, entry: str) -> None:
        local = release.join(entry)
        shared = self.path_resolver.shared_path() + entry

        if os.path.islink(local) and os.readlink(local) == shared and os.path.exists(shared):
            logger.debug("Shared entry %s already linked", entry)
            return

        output.step(f"Linking shared {entry}")

        shared_parent = os.path.dirname(shared)
        if not os.path.isdir(shared_parent):
            self.runner.run(["mkdir", "-p", shared_parent])

        if not os.path.lexists(local) and not os.path.exists(shared):
            local_parent = os.path.dirname(local)
            if not os.path.isdir(local_parent):
                self.runner.run(["mkdir", "-p", local_parent])
            logger.info("Creating empty placeholder for %s", entry)
            self.runner.run(["touch", local])

        if not os.path.exists(shared) and os.path.lexists(local) and not os.path.islink(local):
            logger.info("Seeding shared copy of %s", entry)
            self.runner.run(["cp", "-a", local, shared])

        if os.path.lexists(local):
            if os.path.isdir(local) and not os.path.islink(local):
                self.runner.run(["rm", "-rf", local])
            else:
                self.runner.run(["rm", "-f", local])

        if not os.path.exists(shared):
            raise ConfigurationError(f"The shared file {shared} does not exist")

        local_parent = os.path.dirname(local)
        if not os.path.isdir(local_parent):
            self.runner.run(["mkdir", "-p", local_parent])
        self.runner.run(["ln", "-s", shared, local])
