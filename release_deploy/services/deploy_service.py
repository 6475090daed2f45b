"""Deploy pipeline and rollback"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Union

from ..api.exceptions import HookError, ReleaseDeployError, StorageError
from ..constants import (
    Stage,
    Timing,
    MSG_ALREADY_LIVE,
    MSG_DEPLOY_COMPLETE,
    MSG_ROLLBACK_CANCELLED,
    MSG_ROLLBACK_COMPLETE,
)
from ..core.cleanup import ReleaseCleaner
from ..core.directory_structure import DirectoryStructure
from ..core.live_promoter import LivePromoter
from ..core.materializer import ReleaseMaterializer
from ..core.path_resolver import PathResolver
from ..core.permissions import PermissionApplier
from ..core.pruner import Pruner
from ..core.release_store import ReleaseStore
from ..core.shared_linker import SharedLinker
from ..core.source_fetcher import RefChooser, RefSelection, SourceFetcher
from ..models.config import DeployConfig
from ..models.release import (
    DeployResult,
    PipelineState,
    Release,
    RetentionPolicy,
    RollbackResult,
)
from ..plugins.base import HookContext, HookPoint, HookRegistry
from ..plugins.loader import load_all_hooks
from ..utils import output
from ..utils.lock import DeployLock
from ..utils.process_utils import CommandRunner
from .config_service import ConfigService

logger = logging.getLogger(__name__)

# Picks a rollback target from the candidates, None cancels
ReleaseChooser = Callable[[List[Release], Optional[str]], Optional[Release]]


class DeployPipeline:
    """Runs a deploy from fetch to promotion, and rollbacks

    Every run takes the deploy lock, loads the configuration once and
    resolves paths once. Any ReleaseDeployError aborts the run where it
    happened; ``state`` tells how far the run got.
    """

    def __init__(self,
                 config_service: ConfigService,
                 runner: Optional[CommandRunner] = None,
                 registry: Optional[HookRegistry] = None,
                 lock: Optional[DeployLock] = None,
                 clock: Callable[[], datetime] = datetime.now):
        """Initialize deploy pipeline

        Args:
            config_service: Owner of the configuration
            runner: Command runner, built from Environment.ProcessTimeout when omitted
            registry: Hook registry, the global one when omitted
            lock: Deploy lock, a sidecar of the configuration file when omitted
            clock: Source of release timestamps
        """
        self.config_service = config_service
        self.registry = registry
        self.lock = lock or DeployLock(config_service.config_path)
        self.clock = clock
        self._runner = runner
        self.state = PipelineState.INIT

        self.config: Optional[DeployConfig] = None
        self.runner: Optional[CommandRunner] = None
        self.path_resolver: Optional[PathResolver] = None
        self.store: Optional[ReleaseStore] = None
        self.permissions: Optional[PermissionApplier] = None
        self.cleaner: Optional[ReleaseCleaner] = None
        self.promoter: Optional[LivePromoter] = None

    def _enter(self, state: PipelineState) -> None:
        self.state = state
        logger.debug("Pipeline state: %s", state.value)

    def _start(self) -> None:
        """Lock, load configuration and build the components of one run"""
        self.state = PipelineState.INIT
        self.lock.acquire()
        self._enter(PipelineState.LOCKED)

        self.config = self.config_service.load()
        self.runner = self._runner or CommandRunner(
            timeout=self.config.environment.process_timeout
        )
        self.registry = load_all_hooks(self.config.plugins, self.registry)
        for hook_point in HookPoint.all():
            self.registry.resolve_all(self.config.processes.get(hook_point.stage, hook_point.timing))

        self.path_resolver = self.config_service.path_resolver()
        self.store = ReleaseStore(self.path_resolver)
        self.permissions = PermissionApplier(self.config, self.runner)
        self.cleaner = ReleaseCleaner(self.config, self.runner, self.permissions)
        self.promoter = LivePromoter(self.path_resolver, self.runner)
        self._enter(PipelineState.CONFIG_LOADED)

        DirectoryStructure(self.path_resolver).check()
        self._enter(PipelineState.DIRECTORY_STRUCTURE_VERIFIED)

    def run(self, ref: Union[RefSelection, RefChooser, None] = None) -> DeployResult:
        """
        Deploy a new release

        Args:
            ref: Ref to check out, a chooser prompting for one, or None for the default branch

        Returns:
            Result of the deploy

        Raises:
            ReleaseDeployError: Any stage failed, the live alias is left untouched
                unless promotion itself failed
        """
        result = DeployResult(success=False)
        try:
            self._start()
            self._deploy(ref, result)
        except ReleaseDeployError as e:
            e.pipeline_state = self.state
            result.state = self.state
            raise
        finally:
            self.lock.release()
        return result

    def _deploy(self, ref, result: DeployResult) -> None:
        config = self.config
        previous = self.store.live_target() or config.current
        result.previous_release = previous

        self.run_hooks(Stage.DEPLOY, Timing.PRE, None, previous, result)

        output.stage("Fetch Source")
        fetcher = SourceFetcher(config, self.path_resolver, self.runner)
        fetcher.ensure()
        fetcher.fetch_and_checkout(ref)
        self._enter(PipelineState.FETCHED)

        output.stage("Copy Repository")
        materializer = ReleaseMaterializer(
            self.path_resolver, self.runner, self.config_service, self.clock
        )
        release = materializer.materialize()
        result.release = release
        self._enter(PipelineState.MATERIALIZED)

        output.stage("Pre Permissions")
        self.permissions.apply(Timing.PRE, release)
        self._enter(PipelineState.PERMISSIONS_PRE)

        output.stage("Shared Files")
        SharedLinker(self.path_resolver, self.runner).link(release, config.shared)
        self._enter(PipelineState.SHARED_LINKED)

        output.stage("Remove Unwanted Files")
        Pruner(self.runner).remove(release, config.remove)
        self._enter(PipelineState.PRUNED)

        self.run_hooks(Stage.DEPLOY, Timing.POST, release, previous, result)

        self.run_hooks(Stage.ROLLBACK, Timing.PRE, release, previous, result)
        self.check_release(release)
        self._enter(PipelineState.ROLLBACK_CHECKED)
        self.run_hooks(Stage.ROLLBACK, Timing.POST, release, previous, result)

        self.run_hooks(Stage.CLEANUP, Timing.PRE, release, previous, result)
        output.stage("Cleanup Releases")
        policy = RetentionPolicy(config.environment.max_releases)
        stale = self.store.find_stale(policy, {release.id, self.store.live_target()})
        result.removed_releases = self.cleaner.remove(stale)
        self._enter(PipelineState.STALE_RELEASES_REMOVED)
        self.run_hooks(Stage.CLEANUP, Timing.POST, release, previous, result)

        self.run_hooks(Stage.LIVE, Timing.PRE, release, previous, result)
        output.stage("Post Permissions")
        self.permissions.apply(Timing.POST, release)
        self._enter(PipelineState.PERMISSIONS_POST)

        output.stage("Make Live")
        self.promoter.promote(release)
        self._enter(PipelineState.PROMOTED)
        self.run_hooks(Stage.LIVE, Timing.POST, release, previous, result)

        self._enter(PipelineState.COMPLETE)
        result.success = True
        result.state = self.state
        output.success(MSG_DEPLOY_COMPLETE.format(release=release.id))

    def check_release(self, release: Release) -> None:
        """
        Make sure a release is complete enough to go live

        Raises:
            StorageError: Directory missing or empty
        """
        if not release.directory.is_dir():
            raise StorageError(f"Release directory {release.path} does not exist", release.path)
        if not any(release.directory.iterdir()):
            raise StorageError(f"Release directory {release.path} is empty", release.path)

    def run_hooks(self,
                  stage: Stage,
                  timing: Timing,
                  release: Optional[Release],
                  previous: Optional[str] = None,
                  result: Optional[DeployResult] = None) -> List[str]:
        """
        Run the hooks bound to a slot, in configured order

        Every name is resolved before the first hook runs.

        Returns:
            Names of the hooks that ran

        Raises:
            ConfigurationError: A hook name is not registered
            HookError: A hook raised something other than ReleaseDeployError
        """
        names = self.config.processes.get(stage, timing)
        if not names:
            return []

        hook_point = HookPoint(stage, timing)
        factories = self.registry.resolve_all(names)

        output.stage(f"{hook_point.slot} Hooks")
        ran = []
        for name, factory in zip(names, factories):
            hook = factory(self.config, self.runner, self.config.hook_options.get(name, {}))
            context = HookContext(
                hook_point=hook_point,
                config=self.config,
                release=release,
                previous_release=previous,
                root_path=self.path_resolver.root(),
            )
            output.step(f"Hook {name}")
            try:
                hook.execute(context)
            except ReleaseDeployError:
                raise
            except Exception as e:
                raise HookError(name, str(e)) from e
            ran.append(name)
            if result is not None:
                result.hooks_run.append(f"{hook_point.slot}:{name}")
        return ran

    def rollback_candidates(self) -> List[Release]:
        """Releases a rollback may pick, newest first, without the current one"""
        current = self.config.current
        return [release for release in self.store.list() if release.id != current]

    def rollback(self,
                 chooser: Optional[ReleaseChooser] = None,
                 release_id: Optional[str] = None,
                 reap: bool = False) -> RollbackResult:
        """
        Point the live alias back at an earlier release

        Args:
            chooser: Picks from the candidates when no release_id is given
            release_id: Release to restore
            reap: Delete the release rolled back from

        Returns:
            Result of the rollback, unsuccessful when cancelled or already live

        Raises:
            StorageError: The chosen release does not exist
        """
        try:
            self._start()
            return self._rollback(chooser, release_id, reap)
        except ReleaseDeployError as e:
            e.pipeline_state = self.state
            raise
        finally:
            self.lock.release()

    def _rollback(self, chooser, release_id, reap) -> RollbackResult:
        current = self.config.current
        live = self.store.live_target()
        abandoned = live or current

        if release_id is None:
            candidates = self.rollback_candidates()
            if not candidates:
                output.warning("There is no earlier release to roll back to")
                return RollbackResult(success=False, previous_release=current,
                                      message="No earlier release available")
            if chooser is None:
                target = candidates[0]
            else:
                target = chooser(candidates, current)
            if target is None:
                output.warning(MSG_ROLLBACK_CANCELLED)
                return RollbackResult(success=False, previous_release=current,
                                      message=MSG_ROLLBACK_CANCELLED)
        else:
            target = self.store.get(release_id)

        if target.id == current or (target.id == live and live is not None):
            output.warning(MSG_ALREADY_LIVE)
            return RollbackResult(success=False, release=target, previous_release=current,
                                  message=MSG_ALREADY_LIVE)

        if not self.store.exists(target.id):
            raise StorageError(f"Release {target.id} does not exist", target.path)

        self.run_hooks(Stage.ROLLBACK, Timing.PRE, target, abandoned)

        output.stage("Rollback")
        self.promoter.promote(target)
        self._enter(PipelineState.PROMOTED)
        self.config_service.set_current(target.id)
        self.config_service.save()

        self.run_hooks(Stage.ROLLBACK, Timing.POST, target, abandoned)

        result = RollbackResult(success=True, release=target, previous_release=abandoned)
        if reap and abandoned and abandoned != target.id and self.store.exists(abandoned):
            output.stage("Remove Abandoned Release")
            self.cleaner.remove([self.store.get(abandoned)])
            result.reaped = True

        self._enter(PipelineState.COMPLETE)
        output.success(MSG_ROLLBACK_COMPLETE.format(release=target.id))
        return result

