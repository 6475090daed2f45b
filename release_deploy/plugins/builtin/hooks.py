"""Built-in extension hooks"""

import os
import shlex
import sys
from pathlib import Path
from typing import Dict, List

from ...api.exceptions import ConfigurationError
from ...constants import HOOK_ENV_PREFIX, HOOK_SCRIPT_EXTENSIONS, HOOKS_DIR
from ...models.config import as_bool
from ...utils import output
from ..base import Hook, HookContext, register_hook


@register_hook("lifecycle-scripts")
class LifecycleScriptsHook(Hook):
    """Execute release scripts named after the current slot

    Scripts live in ``.release-deploy/hooks`` inside the release (option
    ``hooks_dir``) and are named ``<stage>-<timing>`` with an optional
    ``.sh`` or ``.py`` extension, e.g. ``deploy-post.sh``. Numbered
    variants such as ``10-deploy-post.sh`` run afterwards in name order.
    """

    def execute(self, context: HookContext) -> None:
        if context.release is None:
            self.logger.warning(f"No release for {context.hook_point.slot}, skipping scripts")
            return

        scripts = self._find_scripts(context)
        if not scripts:
            self.logger.debug(f"No scripts for {context.hook_point.slot}")
            return

        env = self._environment(context)
        for script in scripts:
            output.step(f"Running hook script {script.name}")
            self.logger.info(f"Executing hook script: {script}")
            self.runner.run(self._command(script), cwd=context.release.path, env=env)

    def _hooks_dir(self, context: HookContext) -> Path:
        hooks_dir = Path(self.options.get("hooks_dir", HOOKS_DIR))
        if not hooks_dir.is_absolute():
            hooks_dir = context.release.directory / hooks_dir
        return hooks_dir

    def _find_scripts(self, context: HookContext) -> List[Path]:
        """Find scripts for the slot of a context"""
        hooks_dir = self._hooks_dir(context)
        if not hooks_dir.is_dir():
            return []

        prefix = f"{context.hook_point.stage.value}-{context.hook_point.timing.value}".lower()
        scripts = []
        for ext in HOOK_SCRIPT_EXTENSIONS:
            script_path = hooks_dir / f"{prefix}{ext}"
            if script_path.is_file():
                scripts.append(script_path)
                break

        scripts.extend(
            script for script in sorted(hooks_dir.glob(f"[0-9][0-9]-{prefix}*"))
            if script.is_file()
        )
        return scripts

    @staticmethod
    def _command(script: Path) -> List[str]:
        if script.suffix == ".py":
            return [sys.executable, str(script)]
        if script.suffix == ".sh" or os.access(script, os.X_OK):
            return [str(script)]
        return ["sh", str(script)]

    def _environment(self, context: HookContext) -> Dict[str, str]:
        """Variables describing the slot for the script"""
        values = {
            "HOOK": context.hook_point.slot,
            "STAGE": context.hook_point.stage.value,
            "TIMING": context.hook_point.timing.value,
            "ENVIRONMENT": context.config.environment.name,
            "RELEASE": context.release.id,
            "RELEASE_PATH": context.release.path,
            "PREVIOUS_RELEASE": context.previous_release or "",
            "ROOT": context.root_path or "",
        }
        return {f"{HOOK_ENV_PREFIX}{key}": str(value) for key, value in values.items()}


@register_hook("release-command")
class ReleaseCommandHook(Hook):
    """Run a configured command inside the release directory

    Options:
        command: argv list, or a string split with shell rules
        cwd: directory relative to the release root (default ".")
        sudo: run with sudo (default false)
    """

    def command(self) -> List[str]:
        command = self.options.get("command")
        if isinstance(command, str):
            command = shlex.split(command)
        if not command or not isinstance(command, list):
            raise ConfigurationError(
                f"HookOptions.{self.name}.command must be a command string or list"
            )
        return [str(arg) for arg in command]

    def execute(self, context: HookContext) -> None:
        argv = self.command()

        if context.release is None:
            raise ConfigurationError("No current release is configured")
        if not context.release.directory.is_dir():
            raise ConfigurationError(
                f"The release directory does not exist ({context.release.path})"
            )

        cwd = context.release.join(str(self.options.get("cwd", ".")))
        sudo = as_bool(f"HookOptions.{self.name}.sudo", self.options.get("sudo", False))
        output.step(f"Running {' '.join(argv)}")
        self.runner.run(argv, cwd=cwd, sudo=sudo)
