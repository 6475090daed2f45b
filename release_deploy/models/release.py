# release_deploy/models/release.py
"""Release models for release-deploy"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from ..api.exceptions import ConfigurationError
from ..constants import RELEASE_DATE_DISPLAY, RELEASE_ID_FORMAT, RELEASE_ID_PATTERN


def generate_release_id(now: Optional[datetime] = None, suffix: int = 0) -> str:
    """Build a release id from a timestamp

    Args:
        now: Timestamp to use, defaults to the current local time
        suffix: Disambiguating counter, appended as ``-N`` when non-zero

    Returns:
        Release id, e.g. ``2024-01-03-10-15-00``
    """
    stamp = (now or datetime.now()).strftime(RELEASE_ID_FORMAT)
    if suffix:
        return f"{stamp}-{suffix}"
    return stamp


def is_release_id(name: str) -> bool:
    """Check whether a directory name looks like a release id"""
    return RELEASE_ID_PATTERN.match(name) is not None


def parse_release_id(release_id: str) -> Optional[datetime]:
    """Get the creation time encoded in a release id, or None"""
    match = RELEASE_ID_PATTERN.match(release_id)
    if not match:
        return None
    try:
        return datetime.strptime(match.group("stamp"), RELEASE_ID_FORMAT)
    except ValueError:
        return None


def _ordinal(day: int) -> str:
    if 10 <= day % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_release_date(release_id: str) -> str:
    """Human readable creation date for a release id

    Ids that do not carry a timestamp are returned unchanged.
    """
    created = parse_release_id(release_id)
    if created is None:
        return release_id
    text = created.strftime(RELEASE_DATE_DISPLAY.replace("{day}", _ordinal(created.day)))
    return text[:-2] + text[-2:].lower()


@dataclass(frozen=True)
class Release:
    """One timestamp-named release directory"""
    id: str
    path: str  # absolute, ends with a separator

    @property
    def directory(self) -> Path:
        return Path(self.path)

    @property
    def link_target(self) -> str:
        """Path written into the live alias"""
        return self.path.rstrip(os.sep) or os.sep

    @property
    def created_at(self) -> Optional[datetime]:
        return parse_release_id(self.id)

    @property
    def display_date(self) -> str:
        return format_release_date(self.id)

    def join(self, relative: str) -> str:
        """Resolve a path relative to the release root"""
        return self.path + relative.lstrip(os.sep)


@dataclass
class RetentionPolicy:
    """How many releases are kept on disk"""
    max_releases: int

    def __post_init__(self):
        if not isinstance(self.max_releases, int) or self.max_releases < 1:
            raise ConfigurationError(
                f"Retention requires at least one release, got {self.max_releases!r}"
            )


class PipelineState(Enum):
    """States a deploy run passes through"""
    INIT = "Init"
    LOCKED = "Locked"
    CONFIG_LOADED = "ConfigLoaded"
    DIRECTORY_STRUCTURE_VERIFIED = "DirectoryStructureVerified"
    FETCHED = "Fetched"
    MATERIALIZED = "Materialized"
    PERMISSIONS_PRE = "PermissionsPre"
    SHARED_LINKED = "SharedLinked"
    PRUNED = "Pruned"
    ROLLBACK_CHECKED = "RollbackChecked"
    STALE_RELEASES_REMOVED = "StaleReleasesRemoved"
    PERMISSIONS_POST = "PermissionsPost"
    PROMOTED = "Promoted"
    COMPLETE = "Complete"


@dataclass
class DeployResult:
    """Result of a deploy run"""
    success: bool
    release: Optional[Release] = None
    previous_release: Optional[str] = None
    removed_releases: List[str] = field(default_factory=list)
    hooks_run: List[str] = field(default_factory=list)
    state: PipelineState = PipelineState.INIT


@dataclass
class RollbackResult:
    """Result of a rollback"""
    success: bool
    release: Optional[Release] = None
    previous_release: Optional[str] = None
    reaped: bool = False
    message: Optional[str] = None
