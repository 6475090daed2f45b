"""Tests for path resolution and the release inventory"""

import os

import pytest

from release_deploy.api.exceptions import StorageError
from release_deploy.core.path_resolver import PathResolver, normalize_dir
from release_deploy.core.release_store import ReleaseStore
from release_deploy.models.config import PathsConfig
from release_deploy.models.release import RetentionPolicy


class TestPathResolver:

    def test_normalize_dir(self):
        assert normalize_dir("/srv/app") == "/srv/app/"
        assert normalize_dir("/srv/app///") == "/srv/app/"

    def test_defaults_under_base_dir(self, tmp_path):
        resolver = PathResolver(None, tmp_path)
        root = str(tmp_path.resolve()) + "/"
        assert resolver.root() == root
        assert resolver.repo_path() == root + "repo/"
        assert resolver.releases_path() == root + "releases/"
        assert resolver.shared_path() == root + "shared/"
        assert resolver.live_alias_path() == root + "current"
        assert resolver.live_alias_temp_path() == root + ".current.tmp"

    def test_configured_paths(self, tmp_path):
        paths = PathsConfig(root="/srv/app", releases="/data/releases//", shared="persist")
        resolver = PathResolver(paths, tmp_path)
        assert resolver.root() == "/srv/app/"
        assert resolver.repo_path() == "/srv/app/repo/"
        assert resolver.releases_path() == "/data/releases/"
        assert resolver.shared_path() == str(tmp_path.resolve()) + "/persist/"

    def test_release_path(self, tmp_path):
        resolver = PathResolver(PathsConfig(root="/srv/app"), tmp_path)
        assert resolver.release_path("2024-01-03-10-15-00") == "/srv/app/releases/2024-01-03-10-15-00/"


class TestReleaseStore:

    def test_lists_newest_first(self, resolver, make_release):
        make_release("2024-01-01-00-00-00")
        make_release("2024-01-03-00-00-00")
        make_release("2024-01-02-00-00-00")
        store = ReleaseStore(resolver)

        ids = [release.id for release in store.list()]
        assert ids == ["2024-01-03-00-00-00", "2024-01-02-00-00-00", "2024-01-01-00-00-00"]

    def test_skips_dot_entries_and_files(self, resolver, make_release, deploy_root):
        make_release("2024-01-01-00-00-00")
        (deploy_root / "releases" / ".trash").mkdir()
        (deploy_root / "releases" / "notes.txt").write_text("x")

        assert [r.id for r in ReleaseStore(resolver).list()] == ["2024-01-01-00-00-00"]

    def test_release_paths_end_with_separator(self, resolver, make_release):
        make_release("2024-01-01-00-00-00")
        release = ReleaseStore(resolver).list()[0]
        assert release.path == resolver.releases_path() + "2024-01-01-00-00-00/"

    def test_missing_root_raises(self, tmp_path):
        store = ReleaseStore(PathResolver(PathsConfig(root=str(tmp_path / "nowhere")), tmp_path))
        with pytest.raises(StorageError):
            store.list()

    def test_stale_beyond_window(self, resolver, make_release):
        for release_id in ("A", "B", "C"):
            make_release(release_id)
        store = ReleaseStore(resolver)

        # listing is C, B, A so the window keeps C and B
        stale = store.find_stale(RetentionPolicy(2))
        assert [r.id for r in stale] == ["A"]

    def test_stale_respects_protection(self, resolver, make_release):
        for release_id in ("A", "B", "C"):
            make_release(release_id)
        store = ReleaseStore(resolver)

        assert store.find_stale(RetentionPolicy(2), "A") == []
        assert store.find_stale(RetentionPolicy(2), {"A", None}) == []

    @pytest.mark.parametrize("max_releases", [1, 2, 3, 5])
    @pytest.mark.parametrize("count", [0, 1, 3, 6])
    def test_stale_count_and_order(self, resolver, make_release, max_releases, count):
        ids = [f"2024-01-{day:02d}-00-00-00" for day in range(1, count + 1)]
        for release_id in ids:
            make_release(release_id)
        store = ReleaseStore(resolver)

        stale = [r.id for r in store.find_stale(RetentionPolicy(max_releases))]

        assert len(stale) == max(0, count - max_releases)
        assert stale == sorted(ids, reverse=True)[max_releases:]

        if ids:
            protected = [r.id for r in store.find_stale(RetentionPolicy(max_releases), ids[0])]
            assert ids[0] not in protected
            assert protected == [release_id for release_id in stale if release_id != ids[0]]

    def test_nothing_stale_within_window(self, resolver, make_release):
        make_release("A")
        make_release("B")
        assert ReleaseStore(resolver).find_stale(RetentionPolicy(2)) == []

    def test_exists_rejects_odd_names(self, resolver, make_release):
        make_release("2024-01-01-00-00-00")
        store = ReleaseStore(resolver)
        assert store.exists("2024-01-01-00-00-00")
        assert not store.exists("2024-01-02-00-00-00")
        assert not store.exists("")
        assert not store.exists("../repo")

    def test_live_target(self, resolver, make_release):
        release = make_release("2024-01-01-00-00-00")
        store = ReleaseStore(resolver)
        assert store.live_target() is None

        os.symlink(release.link_target, resolver.live_alias_path())
        assert store.live_target() == "2024-01-01-00-00-00"

    def test_live_target_outside_releases(self, resolver, deploy_root):
        os.symlink(str(deploy_root / "repo"), resolver.live_alias_path())
        assert ReleaseStore(resolver).live_target() is None
