"""Deletion of retired releases"""

import logging
from typing import Iterable, List

from ..constants import Timing
from ..models.config import DeployConfig
from ..models.release import Release
from ..utils import output
from ..utils.process_utils import CommandRunner
from .permissions import PermissionApplier

logger = logging.getLogger(__name__)


class ReleaseCleaner:
    """Removes release directories

    The Pre ownership and mode rules are applied again first so the tree
    is deletable by the deploying user.
    """

    def __init__(self, config: DeployConfig, runner: CommandRunner, permissions: PermissionApplier):
        self.config = config
        self.runner = runner
        self.permissions = permissions

    def remove(self, releases: Iterable[Release]) -> List[str]:
        """
        Delete releases

        Returns:
            Ids of the removed releases
        """
        removed = []
        for release in releases:
            self.permissions.apply(Timing.PRE, release)
            output.step(f"Removing release {release.id}")
            self.runner.run(["rm", "-rf", release.link_target], sudo=self.config.environment.use_sudo)
            logger.info("Removed release %s", release.id)
            removed.append(release.id)
        return removed
