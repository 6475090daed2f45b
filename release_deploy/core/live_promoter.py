"""Repoints the live alias"""

import logging
import os
from typing import Optional

from ..api.exceptions import ProcessError, PromotionError
from ..constants import LIVE_ALIAS_NAME, LIVE_ALIAS_TEMP_NAME, MSG_LINK_UPDATED
from ..models.release import Release
from ..utils import output
from ..utils.process_utils import CommandRunner
from .path_resolver import PathResolver, normalize_dir

logger = logging.getLogger(__name__)


class LivePromoter:
    """Swaps the live alias to a release

    The new symlink is created beside the alias and renamed over it, so
    the alias always resolves to either the old or the new release.
    """

    def __init__(self, path_resolver: PathResolver, runner: CommandRunner):
        self.path_resolver = path_resolver
        self.runner = runner

    def promote(self,
                release: Release,
                root_path: Optional[str] = None,
                alias_name: str = LIVE_ALIAS_NAME) -> None:
        """
        Point the live alias at a release

        Args:
            release: Release to make live
            root_path: Directory holding the alias, defaults to Paths.Root
            alias_name: Alias file name

        Raises:
            PromotionError: The swap did not complete
        """
        root_path = normalize_dir(root_path or self.path_resolver.root())
        alias = root_path + alias_name
        temp = root_path + (LIVE_ALIAS_TEMP_NAME if alias_name == LIVE_ALIAS_NAME
                            else f".{alias_name}.tmp")
        target = release.link_target

        if os.path.islink(alias) and os.readlink(alias) == target:
            logger.info("Live alias already points at %s", release.id)
            return

        try:
            if os.path.lexists(temp):
                self.runner.run(["rm", "-f", temp])
            if os.path.isdir(alias) and not os.path.islink(alias):
                logger.warning("Removing directory in place of the live alias: %s", alias)
                self.runner.run(["rm", "-rf", alias])
            self.runner.run(["ln", "-s", target, temp])
            self.runner.run(["mv", "-T", "-f", temp, alias])
        except ProcessError as e:
            raise PromotionError(
                f"Could not point {alias} at {target}: {e}. Re-link it manually."
            ) from e

        if not os.path.islink(alias) or os.readlink(alias) != target:
            raise PromotionError(f"Live alias {alias} does not point at {target} after the swap")

        output.success(MSG_LINK_UPDATED.format(link=alias, target=target))
