"""Tests for the steps that prepare, promote and delete releases"""

import os

import pytest

from release_deploy.api.exceptions import ConfigurationError, ProcessError, PromotionError, StorageError
from release_deploy.constants import Timing
from release_deploy.core.cleanup import ReleaseCleaner
from release_deploy.core.directory_structure import DirectoryStructure
from release_deploy.core.live_promoter import LivePromoter
from release_deploy.core.materializer import ReleaseMaterializer
from release_deploy.core.path_resolver import PathResolver
from release_deploy.core.permissions import PermissionApplier
from release_deploy.core.pruner import Pruner
from release_deploy.core.release_store import ReleaseStore
from release_deploy.core.shared_linker import SharedLinker
from release_deploy.models.config import DeployConfig, PathsConfig
from release_deploy.services.config_service import ConfigService

from .conftest import FIXED_NOW, RecordingRunner


class TestSharedLinker:

    def test_seeds_shared_copy_from_first_release(self, resolver, make_release, runner):
        release = make_release("2024-01-03-10-15-00")
        (release.directory / "config").mkdir()
        (release.directory / "config" / "db.yml").write_text("database: app\n")

        SharedLinker(resolver, runner).link(release, ["config/db.yml"])

        local = release.join("config/db.yml")
        shared = resolver.shared_path() + "config/db.yml"
        assert os.path.islink(local)
        assert os.readlink(local) == shared
        with open(shared) as f:
            assert f.read() == "database: app\n"
        assert runner.matching("cp", "-a") == [["cp", "-a", local, shared]]

    def test_existing_shared_copy_wins(self, resolver, make_release, runner, deploy_root):
        (deploy_root / "shared" / "config").mkdir()
        (deploy_root / "shared" / "config" / "db.yml").write_text("database: live\n")
        release = make_release("2024-01-03-10-15-00")
        (release.directory / "config").mkdir()
        (release.directory / "config" / "db.yml").write_text("database: app\n")

        SharedLinker(resolver, runner).link(release, ["config/db.yml"])

        with open(release.join("config/db.yml")) as f:
            assert f.read() == "database: live\n"
        assert runner.matching("cp") == []

    def test_linking_twice_is_a_no_op(self, resolver, make_release, runner):
        release = make_release("2024-01-03-10-15-00")
        (release.directory / ".env").write_text("APP_ENV=prod\n")
        linker = SharedLinker(resolver, runner)

        linker.link(release, [".env"])
        recorded = len(runner.commands)
        linker.link(release, [".env"])

        assert len(runner.commands) == recorded
        assert os.path.islink(release.join(".env"))

    def test_placeholder_when_both_missing(self, resolver, make_release, runner):
        release = make_release("2024-01-03-10-15-00")

        SharedLinker(resolver, runner).link(release, ["storage/logs/app.log"])

        shared = resolver.shared_path() + "storage/logs/app.log"
        assert os.path.isfile(shared)
        assert os.path.getsize(shared) == 0
        assert os.readlink(release.join("storage/logs/app.log")) == shared

    def test_directories_are_shared(self, resolver, make_release, runner):
        release = make_release("2024-01-03-10-15-00")
        (release.directory / "uploads").mkdir()
        (release.directory / "uploads" / "a.png").write_text("png")

        SharedLinker(resolver, runner).link(release, ["uploads/"])

        assert os.path.islink(release.join("uploads"))
        assert os.path.isfile(resolver.shared_path() + "uploads/a.png")
        assert runner.matching("rm", "-rf") == [["rm", "-rf", release.join("uploads")]]

    def test_missing_shared_copy_raises(self, resolver, make_release):
        release = make_release("2024-01-03-10-15-00")
        (release.directory / "config").mkdir()
        (release.directory / "config" / "db.yml").write_text("database: app\n")
        # cp is only recorded, so the shared copy never appears
        runner = RecordingRunner(fake=("cp",))

        with pytest.raises(ConfigurationError, match="does not exist"):
            SharedLinker(resolver, runner).link(release, ["config/db.yml"])


class TestPruner:

    def test_removes_regular_files_only(self, make_release, runner):
        release = make_release("2024-01-03-10-15-00")
        (release.directory / "install.txt").write_text("x")
        (release.directory / "docs").mkdir()
        os.symlink(release.join("index.php"), release.join("link.php"))

        removed = Pruner(runner).remove(
            release, ["install.txt", "docs", "link.php", "missing.txt"]
        )

        assert removed == [release.join("install.txt")]
        assert runner.commands == [["rm", release.join("install.txt")]]
        assert not os.path.exists(release.join("install.txt"))
        assert os.path.isdir(release.join("docs"))
        assert os.path.islink(release.join("link.php"))


class TestPermissionApplier:

    def _config(self, use_sudo=False):
        return DeployConfig.from_dict({
            "Environment": {"UseSudo": use_sudo},
            "Chown": {
                "Pre": {"Group": "www-data", "Paths": ["storage", "index.php"]},
                "Post": {"Group": None, "Paths": ["storage"]},
            },
            "Chmod": {
                "Pre": {"Permission": "g+w", "Paths": ["storage"]},
                "Post": {"Permission": "o-rwx", "Paths": []},
            },
        })

    def test_chown_then_chmod(self, make_release, runner):
        release = make_release("2024-01-03-10-15-00")
        (release.directory / "storage").mkdir()

        PermissionApplier(self._config(), runner).apply(Timing.PRE, release)

        assert runner.commands == [
            ["chown", "-R", "www-data", release.join("storage")],
            ["chown", "www-data", release.join("index.php")],
            ["chmod", "-R", "g+w", release.join("storage")],
        ]

    def test_rules_without_value_or_paths_are_skipped(self, make_release, runner):
        release = make_release("2024-01-03-10-15-00")
        PermissionApplier(self._config(), runner).apply(Timing.POST, release)
        assert runner.commands == []

    def test_sudo_prefix(self, make_release, runner):
        release = make_release("2024-01-03-10-15-00")
        (release.directory / "storage").mkdir()

        PermissionApplier(self._config(use_sudo=True), runner).apply(Timing.PRE, release)

        assert all(cmd[0] == "sudo" for cmd in runner.commands)
        assert runner.commands[0][1:3] == ["chown", "-R"]

    def test_glob_patterns_expand(self, make_release, runner):
        release = make_release("2024-01-03-10-15-00")
        (release.directory / "a.sh").write_text("")
        (release.directory / "b.sh").write_text("")
        config = DeployConfig.from_dict({"Chmod": {"Pre": {"Permission": "+x", "Paths": ["*.sh"]}}})

        PermissionApplier(config, runner).apply(Timing.PRE, release)

        assert runner.commands == [
            ["chmod", "+x", release.join("a.sh")],
            ["chmod", "+x", release.join("b.sh")],
        ]


class TestLivePromoter:

    def test_promote_and_repoint(self, resolver, make_release, runner):
        first = make_release("2024-01-01-00-00-00")
        second = make_release("2024-01-02-00-00-00")
        promoter = LivePromoter(resolver, runner)
        alias = resolver.live_alias_path()

        promoter.promote(first)
        assert os.readlink(alias) == first.link_target

        promoter.promote(second)
        assert os.readlink(alias) == second.link_target
        assert not os.path.lexists(resolver.live_alias_temp_path())
        assert runner.matching("mv")[-1] == [
            "mv", "-T", "-f", resolver.live_alias_temp_path(), alias
        ]

    def test_promoting_live_release_runs_nothing(self, resolver, make_release, runner):
        release = make_release("2024-01-01-00-00-00")
        promoter = LivePromoter(resolver, runner)
        promoter.promote(release)
        recorded = len(runner.commands)

        promoter.promote(release)

        assert len(runner.commands) == recorded

    def test_replaces_directory_at_alias(self, resolver, make_release, runner, deploy_root):
        (deploy_root / "current").mkdir()
        release = make_release("2024-01-01-00-00-00")

        LivePromoter(resolver, runner).promote(release)

        assert os.readlink(resolver.live_alias_path()) == release.link_target

    def test_failed_swap_leaves_alias(self, resolver, make_release):
        first = make_release("2024-01-01-00-00-00")
        second = make_release("2024-01-02-00-00-00")
        LivePromoter(resolver, RecordingRunner()).promote(first)

        failing = RecordingRunner(fail_on=[("mv",)])
        with pytest.raises(PromotionError):
            LivePromoter(resolver, failing).promote(second)

        assert os.readlink(resolver.live_alias_path()) == first.link_target


class TestReleaseMaterializer:

    def test_copies_checkout_including_dotfiles(self, resolver, runner):
        materializer = ReleaseMaterializer(resolver, runner, clock=lambda: FIXED_NOW)

        release = materializer.materialize()

        assert release.id == "2024-01-03-10-15-00"
        assert release.path == resolver.releases_path() + "2024-01-03-10-15-00/"
        assert os.path.isfile(release.join("index.php"))
        assert os.path.isfile(release.join(".env.example"))
        assert os.path.isfile(release.join("config/db.yml"))

    def test_same_second_gets_suffix(self, resolver, runner):
        materializer = ReleaseMaterializer(resolver, runner, clock=lambda: FIXED_NOW)

        materializer.materialize()
        second = materializer.materialize()

        assert second.id == "2024-01-03-10-15-00-1"

    def test_records_current(self, config_service, runner):
        materializer = ReleaseMaterializer(
            config_service.path_resolver(), runner, config_service, clock=lambda: FIXED_NOW
        )

        release = materializer.materialize()

        assert config_service.config.current == release.id
        assert ConfigService(config_service.config_path).load().current == release.id

    def test_failed_copy_is_not_listed(self, config_service, make_release):
        make_release("2023-12-03-00-00-00")
        config_service.load()
        resolver = config_service.path_resolver()
        runner = RecordingRunner(fail_on=[("cp",)])
        materializer = ReleaseMaterializer(resolver, runner, config_service, clock=lambda: FIXED_NOW)

        with pytest.raises(ProcessError):
            materializer.materialize()

        assert [release.id for release in ReleaseStore(resolver).list()] == ["2023-12-03-00-00-00"]
        assert os.path.isdir(materializer.staging_path("2024-01-03-10-15-00"))
        assert ConfigService(config_service.config_path).load().current is None

    def test_leftover_staging_is_replaced(self, resolver, runner):
        materializer = ReleaseMaterializer(resolver, runner, clock=lambda: FIXED_NOW)
        staging = materializer.staging_path("2024-01-03-10-15-00")
        os.makedirs(staging)
        with open(os.path.join(staging, "partial.txt"), "w") as f:
            f.write("half copied")

        release = materializer.materialize()

        assert runner.matching("rm", "-rf") == [["rm", "-rf", staging]]
        assert not os.path.exists(release.join("partial.txt"))
        assert not os.path.exists(staging)


class TestReleaseCleaner:

    def test_reapplies_pre_rules_then_deletes(self, make_release, runner):
        old = make_release("2024-01-01-00-00-00")
        config = DeployConfig.from_dict({
            "Chown": {"Pre": {"Group": "deploy", "Paths": ["index.php"]}},
        })
        cleaner = ReleaseCleaner(config, runner, PermissionApplier(config, runner))

        removed = cleaner.remove([old])

        assert removed == [old.id]
        assert runner.commands == [
            ["chown", "deploy", old.join("index.php")],
            ["rm", "-rf", old.link_target],
        ]
        assert not os.path.exists(old.link_target)


class TestDirectoryStructure:

    def test_complete_layout_passes(self, resolver):
        DirectoryStructure(resolver).check()

    def test_missing_directory_fails(self, resolver, deploy_root):
        os.rmdir(deploy_root / "shared")
        structure = DirectoryStructure(resolver)

        assert structure.missing() == ["Shared"]
        with pytest.raises(StorageError, match="Shared"):
            structure.check()

    def test_missing_root_fails(self, tmp_path):
        resolver = PathResolver(PathsConfig(root=str(tmp_path / "absent")), tmp_path)
        with pytest.raises(StorageError, match="does not exist"):
            DirectoryStructure(resolver).check()

    def test_create(self, tmp_path):
        resolver = PathResolver(PathsConfig(root=str(tmp_path / "site")), tmp_path)
        structure = DirectoryStructure(resolver)

        created = structure.create()

        assert len(created) == 4
        assert structure.missing() == []
