"""Shared fixtures for release-deploy tests"""

from datetime import datetime
from typing import Dict, Iterable, Optional, Sequence, Tuple

import pytest
import yaml

from release_deploy.api.exceptions import ProcessError
from release_deploy.core.path_resolver import PathResolver
from release_deploy.models.config import PathsConfig
from release_deploy.models.release import Release
from release_deploy.services.config_service import ConfigService
from release_deploy.utils.process_utils import CommandRunner

# Commands that need privileges or a network and are only recorded
FAKED_COMMANDS = ("git", "chown", "chmod", "sudo")

FIXED_NOW = datetime(2024, 1, 3, 10, 15, 0)


class RecordingRunner(CommandRunner):
    """CommandRunner that records every argv

    Filesystem commands really run, faked ones are only recorded.
    Captured queries answer from ``responses``.
    """

    def __init__(self,
                 fake: Iterable[str] = FAKED_COMMANDS,
                 responses: Optional[Dict[Tuple[str, ...], str]] = None,
                 fail_on: Iterable[Tuple[str, ...]] = ()):
        super().__init__(timeout=30, on_line=lambda line: None, echo=False)
        self.fake = set(fake)
        self.responses = {("git", "remote"): "origin\n"}
        self.responses.update(responses or {})
        self.fail_on = [tuple(prefix) for prefix in fail_on]
        self.commands = []
        self.captured = []

    def run(self, argv: Sequence[str], cwd=None, sudo: bool = False, env=None) -> str:
        cmd = self.build(argv, sudo)
        self.commands.append(cmd)
        for prefix in self.fail_on:
            if tuple(cmd[:len(prefix)]) == prefix:
                raise ProcessError(cmd, 1, "simulated failure")
        if cmd[0] in self.fake:
            return ""
        return super().run(argv, cwd=cwd, env=env)

    def capture(self, argv: Sequence[str], cwd=None) -> str:
        cmd = self.build(argv)
        self.captured.append(cmd)
        return self.responses.get(tuple(cmd), "")

    def names(self):
        """First word of every recorded command"""
        return [cmd[0] for cmd in self.commands]

    def matching(self, *prefix: str):
        return [cmd for cmd in self.commands if tuple(cmd[:len(prefix)]) == prefix]


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def deploy_root(tmp_path):
    """Deploy root with repo, releases and shared, and a fake checkout"""
    root = tmp_path / "app"
    for name in ("repo", "releases", "shared"):
        (root / name).mkdir(parents=True)

    repo = root / "repo"
    (repo / ".git").mkdir()
    (repo / "index.php").write_text("<?php echo 'hello';\n")
    (repo / ".env.example").write_text("APP_ENV=prod\n")
    (repo / "config").mkdir()
    (repo / "config" / "db.yml").write_text("database: app\n")
    (repo / "install.txt").write_text("remove me\n")
    return root


@pytest.fixture
def write_config(deploy_root):
    """Write release-deploy.yaml into the deploy root, sections override the defaults"""

    def _write(**sections):
        data = {
            "Environment": {"Name": "test", "MaxReleases": 3},
            "Git": {
                "Repo": "https://example.com/team/app.git",
                "Remote": "origin",
                "Branch": "master",
            },
        }
        data.update(sections)
        path = deploy_root / "release-deploy.yaml"
        path.write_text(yaml.safe_dump({"Deploy": data}, sort_keys=False))
        return path

    return _write


@pytest.fixture
def config_service(write_config):
    return ConfigService(write_config())


@pytest.fixture
def resolver(deploy_root):
    return PathResolver(PathsConfig(), deploy_root)


@pytest.fixture
def make_release(resolver):
    """Create a release directory with one file"""

    def _make(release_id: str) -> Release:
        release = Release(id=release_id, path=resolver.release_path(release_id))
        release.directory.mkdir(parents=True)
        (release.directory / "index.php").write_text(release_id)
        return release

    return _make
