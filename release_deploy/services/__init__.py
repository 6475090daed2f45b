# release_deploy/services/__init__.py
"""Business logic services for release-deploy"""

from .config_service import ConfigService, locate_config
from .deploy_service import DeployPipeline

__all__ = [
    "ConfigService",
    "locate_config",
    "DeployPipeline",
]
