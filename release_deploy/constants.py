"""Global constants for release-deploy"""

import re
from enum import Enum

APP_NAME = "release-deploy"

# Configuration
CONFIG_ROOT_KEY = "Deploy"
DEFAULT_CONFIG_FILE = "release-deploy.yaml"
CONFIG_BACKUP_SUFFIX = ".bak"
LOCK_FILE_SUFFIX = ".lock"

# Directory structure
REPO_DIR = "repo"
RELEASES_DIR = "releases"
SHARED_DIR = "shared"
LIVE_ALIAS_NAME = "current"
LIVE_ALIAS_TEMP_NAME = ".current.tmp"
GIT_METADATA_DIR = ".git"

# Environment defaults
DEFAULT_ENVIRONMENT_NAME = "prod"
DEFAULT_MAX_RELEASES = 5
DEFAULT_USE_SUDO = False
DEFAULT_PROCESS_TIMEOUT = 120  # seconds, <= 0 disables the timeout

# Git defaults
DEFAULT_REMOTE = "origin"
DEFAULT_BRANCH = "master"
TAG_LIST_LIMIT = 10

# Release identifiers
RELEASE_ID_FORMAT = "%Y-%m-%d-%H-%M-%S"
RELEASE_ID_PATTERN = re.compile(
    r"^(?P<stamp>\d{4}-\d{2}-\d{2}-\d{2}-\d{2}-\d{2})(?:-(?P<suffix>\d+))?$"
)
RELEASE_DATE_DISPLAY = "%b {day}, %Y %I:%M:%S %p"

# Built-in hooks
HOOKS_DIR = ".release-deploy/hooks"
HOOK_SCRIPT_EXTENSIONS = [".sh", ".py", ""]
HOOK_ENV_PREFIX = "RELEASE_DEPLOY_"

# Environment variables
ENV_CONFIG_PATH = "RELEASE_DEPLOY_CONFIG"
ENV_LOG_LEVEL = "RELEASE_DEPLOY_LOG_LEVEL"

# Logging
LOG_FORMAT = "%(message)s"


class Stage(Enum):
    """Pipeline stage a hook can be bound to"""
    DEPLOY = "Deploy"
    ROLLBACK = "Rollback"
    LIVE = "Live"
    CLEANUP = "Cleanup"


class Timing(Enum):
    """Position of a hook or permission rule relative to its stage"""
    PRE = "Pre"
    POST = "Post"


# Error codes
class ErrorCode:
    CONFIGURATION_ERROR = "RD001"
    STORAGE_ERROR = "RD002"
    PROCESS_ERROR = "RD003"
    PROMOTION_ERROR = "RD004"
    LOCK_ERROR = "RD005"
    HOOK_ERROR = "RD006"
    USER_CANCELLED = "RD007"


# Process exit codes per error code
EXIT_CODES = {
    ErrorCode.CONFIGURATION_ERROR: 2,
    ErrorCode.STORAGE_ERROR: 3,
    ErrorCode.PROCESS_ERROR: 4,
    ErrorCode.PROMOTION_ERROR: 5,
    ErrorCode.LOCK_ERROR: 6,
    ErrorCode.HOOK_ERROR: 7,
    ErrorCode.USER_CANCELLED: 1,
}
EXIT_INTERRUPTED = 130

# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_ERROR = "✗"
EMOJI_WARNING = "⚠"
EMOJI_ARROW = "→"
EMOJI_ROCKET = "🚀"
EMOJI_LINK = "🔗"

# Messages templates
MSG_DEPLOY_COMPLETE = f"{EMOJI_ROCKET} Deploy complete: {{release}} is live"
MSG_ROLLBACK_COMPLETE = f"{EMOJI_SUCCESS} Rolled back to {{release}}"
MSG_LINK_UPDATED = f"{EMOJI_LINK} Live alias updated: {{link}} {EMOJI_ARROW} {{target}}"
MSG_ALREADY_LIVE = "Selected release is already live"
MSG_ROLLBACK_CANCELLED = "Rollback cancelled"
MSG_STRUCTURE_INVALID = (
    "The release directory structure is not valid. "
    "Run 'release-deploy config init' to create it."
)

# Interactive prompts
PROMPT_SELECT_TAG = "Enter the index of the tag"
PROMPT_SELECT_BRANCH = "Enter the index of the branch"
PROMPT_SELECT_RELEASE = "Enter the index of the release to restore"
