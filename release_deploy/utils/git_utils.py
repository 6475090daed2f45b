"""Git query utilities"""

from pathlib import Path
from typing import List, Optional, Tuple

from packaging.version import parse, Version, InvalidVersion

from ..api.exceptions import ConfigurationError
from ..constants import GIT_METADATA_DIR, TAG_LIST_LIMIT
from .process_utils import CommandRunner


def is_git_repository(path: Path) -> bool:
    """
    Check if a checkout directory carries git metadata

    Args:
        path: Directory path

    Returns:
        True if ``path/.git`` exists
    """
    return (Path(path) / GIT_METADATA_DIR).exists()


def list_remotes(runner: CommandRunner, path: Path) -> List[str]:
    """
    List configured remote names

    Args:
        runner: Command runner
        path: Repository path

    Returns:
        Remote names in git's order
    """
    output = runner.capture(["git", "remote"], cwd=path)
    return [line.strip() for line in output.splitlines() if line.strip()]


def parse_version(tag: str) -> Optional[Version]:
    """
    Parse a tag as a version, accepting a leading ``v``

    Args:
        tag: Tag name

    Returns:
        Version object or None if the tag is not a version
    """
    try:
        return parse(tag[1:] if tag[:1] in ("v", "V") else tag)
    except InvalidVersion:
        return None


def sort_tags(tags: List[str]) -> List[str]:
    """Sort tags newest version first, non-version tags after, by name descending"""
    versioned = [(parse_version(tag), tag) for tag in tags]
    ordered = sorted(
        (item for item in versioned if item[0] is not None),
        key=lambda item: item[0],
        reverse=True,
    )
    others = sorted((tag for version, tag in versioned if version is None), reverse=True)
    return [tag for _, tag in ordered] + others


def list_tags(runner: CommandRunner,
              path: Path,
              pattern: Optional[str] = None,
              limit: int = TAG_LIST_LIMIT) -> List[str]:
    """
    List the newest tags of a repository

    Args:
        runner: Command runner
        path: Repository path
        pattern: Optional ``git tag -l`` glob
        limit: Maximum number of tags returned

    Returns:
        Tags, newest version first
    """
    cmd = ["git", "tag", "-l"]
    if pattern:
        cmd.append(pattern)
    output = runner.capture(cmd, cwd=path)
    tags = [line.strip() for line in output.splitlines() if line.strip()]
    return sort_tags(tags)[:limit]


def list_remote_branches(runner: CommandRunner, path: Path) -> List[str]:
    """
    List remote-tracking branches as ``remote/branch``

    Args:
        runner: Command runner
        path: Repository path

    Returns:
        Branch names, symbolic refs such as ``origin/HEAD -> origin/master`` skipped
    """
    output = runner.capture(["git", "branch", "-r"], cwd=path)
    branches = []
    for line in output.splitlines():
        name = line.strip()
        if not name or "->" in name:
            continue
        branches.append(name)
    return branches


def split_remote_branch(ref: str) -> Tuple[str, str]:
    """
    Split ``remote/branch`` into its two segments

    Branch names may themselves contain slashes, only the first one separates.

    Raises:
        ConfigurationError: Either segment is missing
    """
    remote, _, branch = (ref or "").strip().partition("/")
    if not remote or not branch:
        raise ConfigurationError(f"Invalid remote or branch: {ref!r} (expected remote/branch)")
    return remote, branch
