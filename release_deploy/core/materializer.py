"""Creates new release directories from the checkout"""

import logging
import os
from datetime import datetime
from typing import Callable, Optional

from ..models.release import Release, generate_release_id
from ..utils import output
from ..utils.process_utils import CommandRunner
from .path_resolver import PathResolver, normalize_dir

logger = logging.getLogger(__name__)


class ReleaseMaterializer:
    """Stamps a release id and copies the checkout into it"""

    def __init__(self,
                 path_resolver: PathResolver,
                 runner: CommandRunner,
                 config_service=None,
                 clock: Callable[[], datetime] = datetime.now):
        """
        Initialize materializer

        Args:
            path_resolver: Path resolver of the current run
            runner: Command runner
            config_service: When given, the new release is saved as Current
            clock: Source of the release timestamp
        """
        self.path_resolver = path_resolver
        self.runner = runner
        self.config_service = config_service
        self.clock = clock

    def next_release_id(self, releases_path: Optional[str] = None) -> str:
        """Release id for now, suffixed ``-N`` while the directory already exists"""
        releases_path = normalize_dir(releases_path or self.path_resolver.releases_path())
        now = self.clock()
        suffix = 0
        release_id = generate_release_id(now)
        while os.path.lexists(releases_path + release_id):
            suffix += 1
            release_id = generate_release_id(now, suffix)
        return release_id

    def staging_path(self, release_id: str, releases_path: Optional[str] = None) -> str:
        """Hidden directory a release is copied into before it is renamed into place"""
        releases_path = normalize_dir(releases_path or self.path_resolver.releases_path())
        return f"{releases_path}.{release_id}.tmp"

    def materialize(self,
                    repo_path: Optional[str] = None,
                    releases_path: Optional[str] = None) -> Release:
        """
        Copy the checkout into a new release directory

        Args:
            repo_path: Checkout directory, defaults to Paths.Repo
            releases_path: Releases root, defaults to Paths.Releases

        Returns:
            The new release, already recorded as Current when a config service is attached

        Raises:
            ProcessError: The copy or the rename failed, no release is listed then
        """
        repo_path = normalize_dir(repo_path or self.path_resolver.repo_path())
        releases_path = normalize_dir(releases_path or self.path_resolver.releases_path())

        release_id = self.next_release_id(releases_path)
        release = Release(id=release_id, path=normalize_dir(releases_path + release_id))

        output.step(f"Creating release {release_id}")
        staging = self.staging_path(release_id, releases_path)
        if os.path.lexists(staging):
            self.runner.run(["rm", "-rf", staging])
        self.runner.run(["mkdir", staging])
        self.runner.run(["cp", "-a", repo_path + ".", staging + "/"])
        self.runner.run(["mv", "-T", staging, release.link_target])
        logger.info("Materialized release %s at %s", release_id, release.path)

        if self.config_service is not None:
            self.config_service.set_current(release_id)
            self.config_service.save()

        return release
