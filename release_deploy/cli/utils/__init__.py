"""CLI utilities"""

from .output import (
    format_deploy_result,
    format_rollback_result,
    show_error,
    releases_table,
    choice_table,
    config_table,
)
from .interactive import ask_index, RefPrompter, ReleasePrompter, ConfigWizard

__all__ = [
    'format_deploy_result',
    'format_rollback_result',
    'show_error',
    'releases_table',
    'choice_table',
    'config_table',
    'ask_index',
    'RefPrompter',
    'ReleasePrompter',
    'ConfigWizard',
]
