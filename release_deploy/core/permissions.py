"""Ownership and mode changes applied inside a release"""

import glob
import logging
import os
from typing import List

from ..constants import Timing
from ..models.config import DeployConfig, PermissionRule
from ..models.release import Release
from ..utils import output
from ..utils.process_utils import CommandRunner

logger = logging.getLogger(__name__)

_GLOB_CHARS = ("*", "?", "[")


class PermissionApplier:
    """Applies the chown and chmod rules of one timing to a release"""

    def __init__(self, config: DeployConfig, runner: CommandRunner):
        self.config = config
        self.runner = runner

    def apply(self, timing: Timing, release: Release) -> None:
        """
        Apply the chown rule, then the chmod rule, of a timing

        Errors from chown or chmod are not caught here.

        Args:
            timing: Pre or Post
            release: Release the rule paths are relative to
        """
        self._apply_rule("chown", timing, self.config.chown.rule(timing), release)
        self._apply_rule("chmod", timing, self.config.chmod.rule(timing), release)

    def _apply_rule(self, command: str, timing: Timing, rule: PermissionRule, release: Release) -> None:
        value = rule.value
        if value is None:
            logger.debug("%s %s skipped, no value configured", timing.value, command)
            return
        if not rule.paths:
            return

        output.step(f"{timing.value} {command.capitalize()}")
        for pattern in rule.paths:
            for target in self._expand(release, pattern):
                argv = [command]
                if os.path.isdir(target):
                    argv.append("-R")
                argv.extend([value, target])
                logger.info("%s %s: %s", timing.value, command, " ".join(argv))
                self.runner.run(argv, sudo=self.config.environment.use_sudo)

    @staticmethod
    def _expand(release: Release, pattern: str) -> List[str]:
        target = release.join(pattern)
        if any(char in pattern for char in _GLOB_CHARS):
            matches = sorted(glob.glob(target))
            if matches:
                return matches
        return [target]
