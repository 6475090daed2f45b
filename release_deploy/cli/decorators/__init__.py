# release_deploy/cli/decorators/__init__.py
"""CLI decorators"""

from .errors import handle_errors
from .config import require_config, ensure_no_config

__all__ = [
    'handle_errors',
    'require_config',
    'ensure_no_config',
]
