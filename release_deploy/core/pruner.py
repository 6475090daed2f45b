"""Deletes files that must not ship with a release"""

import logging
import os
from typing import Iterable, List

from ..models.release import Release
from ..utils import output
from ..utils.process_utils import CommandRunner

logger = logging.getLogger(__name__)


class Pruner:
    """Removes listed regular files from a release"""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def remove(self, release: Release, remove_list: Iterable[str]) -> List[str]:
        """
        Delete each listed path that is a regular file

        Directories and missing entries are skipped.

        Returns:
            Paths that were removed
        """
        removed = []
        for entry in remove_list:
            target = release.join(entry)
            if os.path.islink(target) or not os.path.isfile(target):
                logger.debug("Skipping %s, not a regular file", target)
                continue
            output.step(f"Removing {entry}")
            self.runner.run(["rm", target])
            removed.append(target)
        return removed
