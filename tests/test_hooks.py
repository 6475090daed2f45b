"""Tests for the hook registry, loader and built-in hooks"""

import os

import pytest

from release_deploy.api.exceptions import ConfigurationError
from release_deploy.constants import Stage, Timing
from release_deploy.models.config import DeployConfig
from release_deploy.plugins.base import Hook, HookContext, HookPoint, HookRegistry, register_hook
from release_deploy.plugins.builtin.hooks import LifecycleScriptsHook, ReleaseCommandHook
from release_deploy.plugins.loader import load_all_hooks

from .conftest import RecordingRunner


class NoopHook(Hook):
    """Does nothing"""

    def execute(self, context):
        pass


def context_for(release, stage=Stage.DEPLOY, timing=Timing.POST, previous=None):
    return HookContext(
        hook_point=HookPoint(stage, timing),
        config=DeployConfig.from_dict({"Environment": {"Name": "staging"}}),
        release=release,
        previous_release=previous,
        root_path="/srv/app/",
    )


class TestHookRegistry:

    def test_resolve(self):
        registry = HookRegistry()
        registry.register("noop", NoopHook)

        assert registry.resolve("noop") is NoopHook
        assert registry.names() == ["noop"]

    def test_unknown_name(self):
        registry = HookRegistry()
        registry.register("noop", NoopHook)

        with pytest.raises(ConfigurationError, match="Unknown hook 'missing'"):
            registry.resolve_all(["noop", "missing"])

    def test_register_hook_decorator(self):
        registry = HookRegistry()

        @register_hook("warm", registry=registry)
        class WarmHook(NoopHook):
            pass

        assert WarmHook.name == "warm"
        hook = registry.create("warm", DeployConfig(), RecordingRunner())
        assert isinstance(hook, WarmHook)
        assert hook.get_info().name == "warm"

    def test_slot_names(self):
        slots = [point.slot for point in HookPoint.all()]
        assert len(slots) == 8
        assert "Cleanup/Post" in slots


class TestHookLoader:

    def test_builtin_hooks_registered(self):
        registry = load_all_hooks([], HookRegistry())
        assert registry.names() == ["lifecycle-scripts", "release-command"]

    def test_plugin_module(self, tmp_path, monkeypatch):
        (tmp_path / "site_deploy_hooks.py").write_text(
            "from release_deploy.plugins.base import Hook\n"
            "\n"
            "\n"
            "class WarmCacheHook(Hook):\n"
            "    name = 'warm-cache'\n"
            "\n"
            "    def execute(self, context):\n"
            "        pass\n"
        )
        monkeypatch.syspath_prepend(str(tmp_path))

        registry = load_all_hooks(["site_deploy_hooks"], HookRegistry())

        assert registry.is_registered("warm-cache")

    def test_missing_module(self):
        with pytest.raises(ConfigurationError, match="Cannot import"):
            load_all_hooks(["no_such_hooks_module"], HookRegistry())


class TestLifecycleScriptsHook:

    def _hooks_dir(self, release):
        hooks_dir = release.directory / ".release-deploy" / "hooks"
        hooks_dir.mkdir(parents=True)
        return hooks_dir

    def test_runs_matching_scripts_in_order(self, make_release, runner):
        release = make_release("2024-01-03-10-15-00")
        hooks_dir = self._hooks_dir(release)
        (hooks_dir / "deploy-post").write_text(
            'echo "main $RELEASE_DEPLOY_HOOK $RELEASE_DEPLOY_RELEASE $RELEASE_DEPLOY_ENVIRONMENT" >> hook.log\n'
        )
        numbered = hooks_dir / "10-deploy-post.sh"
        numbered.write_text('#!/bin/sh\necho "numbered $RELEASE_DEPLOY_PREVIOUS_RELEASE" >> hook.log\n')
        os.chmod(numbered, 0o755)
        (hooks_dir / "deploy-pre.sh").write_text("#!/bin/sh\necho wrong >> hook.log\n")

        hook = LifecycleScriptsHook(DeployConfig(), runner)
        hook.execute(context_for(release, previous="2024-01-02-00-00-00"))

        with open(release.join("hook.log")) as f:
            lines = f.read().splitlines()
        assert lines == [
            "main Deploy/Post 2024-01-03-10-15-00 staging",
            "numbered 2024-01-02-00-00-00",
        ]
        assert runner.commands[0] == ["sh", str(hooks_dir / "deploy-post")]

    def test_no_scripts(self, make_release, runner):
        release = make_release("2024-01-03-10-15-00")
        LifecycleScriptsHook(DeployConfig(), runner).execute(context_for(release))
        assert runner.commands == []

    def test_without_release(self, runner):
        LifecycleScriptsHook(DeployConfig(), runner).execute(
            context_for(None, Stage.DEPLOY, Timing.PRE)
        )
        assert runner.commands == []

    def test_failing_script_propagates(self, make_release, runner):
        from release_deploy.api.exceptions import ProcessError

        release = make_release("2024-01-03-10-15-00")
        (self._hooks_dir(release) / "live-pre").write_text("exit 3\n")

        with pytest.raises(ProcessError) as exc_info:
            LifecycleScriptsHook(DeployConfig(), runner).execute(
                context_for(release, Stage.LIVE, Timing.PRE)
            )
        assert exc_info.value.returncode == 3


class TestReleaseCommandHook:

    def test_runs_in_release(self, make_release, runner):
        release = make_release("2024-01-03-10-15-00")
        hook = ReleaseCommandHook(DeployConfig(), runner, {"command": "touch built.flag"})

        hook.execute(context_for(release))

        assert runner.commands == [["touch", "built.flag"]]
        assert os.path.isfile(release.join("built.flag"))

    def test_sudo_option(self, make_release, runner):
        release = make_release("2024-01-03-10-15-00")
        hook = ReleaseCommandHook(DeployConfig(), runner,
                                  {"command": ["service", "php-fpm", "reload"], "sudo": True})

        hook.execute(context_for(release))

        assert runner.commands == [["sudo", "service", "php-fpm", "reload"]]

    def test_missing_command(self, make_release, runner):
        release = make_release("2024-01-03-10-15-00")
        with pytest.raises(ConfigurationError):
            ReleaseCommandHook(DeployConfig(), runner, {}).execute(context_for(release))

    def test_missing_release_directory(self, resolver, runner):
        from release_deploy.models.release import Release

        release = Release(id="2024-01-03-10-15-00", path=resolver.release_path("2024-01-03-10-15-00"))
        hook = ReleaseCommandHook(DeployConfig(), runner, {"command": "true"})

        with pytest.raises(ConfigurationError, match="does not exist"):
            hook.execute(context_for(release))
