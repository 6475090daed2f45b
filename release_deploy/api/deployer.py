"""Deployer API for deploy and rollback operations"""

from pathlib import Path
from typing import List, Optional, Union

from ..core.release_store import ReleaseStore
from ..core.source_fetcher import RefSelection
from ..models import DeployResult, Release, RollbackResult
from ..services.config_service import ConfigService, locate_config
from ..services.deploy_service import DeployPipeline
from ..utils.process_utils import CommandRunner


class Deployer:
    """Deployer class for scripted deploys and rollbacks"""

    def __init__(self,
                 config_path: Optional[Union[str, Path]] = None,
                 runner: Optional[CommandRunner] = None):
        """
        Initialize deployer

        Args:
            config_path: Configuration file, located the usual way when omitted
            runner: Command runner shared by every operation
        """
        self.config_service = ConfigService(locate_config(config_path))
        self.runner = runner

    def pipeline(self) -> DeployPipeline:
        return DeployPipeline(self.config_service, runner=self.runner)

    def deploy(self,
               tag: Optional[str] = None,
               branch: Optional[str] = None) -> DeployResult:
        """
        Deploy a new release without prompting

        Args:
            tag: Tag to check out
            branch: ``remote/branch`` to pull

        Returns:
            DeployResult: Deploy result

        Raises:
            ValueError: If both tag and branch are given
            ReleaseDeployError: If any stage fails
        """
        if tag and branch:
            raise ValueError("Cannot specify both tag and branch")

        if tag:
            ref = RefSelection.tag(tag)
        elif branch:
            ref = RefSelection.branch(branch)
        else:
            ref = RefSelection.default()
        return self.pipeline().run(ref)

    def rollback(self, release_id: Optional[str] = None, reap: bool = False) -> RollbackResult:
        """
        Roll back to a release, the newest earlier one by default

        Raises:
            ReleaseDeployError: If the rollback fails
        """
        return self.pipeline().rollback(release_id=release_id, reap=reap)

    def releases(self) -> List[Release]:
        """Releases on disk, newest first"""
        return ReleaseStore(self.config_service.path_resolver()).list()


def deploy(config_path: Optional[Union[str, Path]] = None,
           tag: Optional[str] = None,
           branch: Optional[str] = None) -> DeployResult:
    """
    Deploy a new release

    This is a convenience function that creates a Deployer instance
    and performs the deploy.
    """
    return Deployer(config_path).deploy(tag=tag, branch=branch)


def rollback(config_path: Optional[Union[str, Path]] = None,
             release_id: Optional[str] = None,
             reap: bool = False) -> RollbackResult:
    """Roll back to an earlier release"""
    return Deployer(config_path).rollback(release_id=release_id, reap=reap)
