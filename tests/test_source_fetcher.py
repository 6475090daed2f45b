"""Tests for SourceFetcher and the git helpers"""

import pytest

from release_deploy.api.exceptions import ConfigurationError
from release_deploy.core.source_fetcher import RefKind, RefSelection, SourceFetcher
from release_deploy.models.config import DeployConfig
from release_deploy.utils.git_utils import sort_tags, split_remote_branch

from .conftest import RecordingRunner


@pytest.fixture
def config():
    return DeployConfig.from_dict({
        "Git": {"Repo": "https://example.com/team/app.git", "Remote": "origin", "Branch": "main"},
    })


@pytest.fixture
def fetcher(config, resolver, runner):
    return SourceFetcher(config, resolver, runner)


class TestFetchAndCheckout:

    def test_tag(self, fetcher, runner):
        applied = fetcher.fetch_and_checkout(RefSelection.tag("v1.2.0"))

        assert applied == RefSelection.tag("v1.2.0")
        assert runner.commands == [
            ["git", "fetch", "--all"],
            ["git", "checkout", "main"],
            ["git", "checkout", "v1.2.0"],
        ]

    def test_branch(self, fetcher, runner):
        fetcher.fetch_and_checkout(RefSelection.branch("upstream/feature/login"))

        assert runner.commands[-1] == ["git", "pull", "upstream", "feature/login"]

    def test_default(self, fetcher, runner):
        fetcher.fetch_and_checkout(None)

        assert runner.commands[-1] == ["git", "pull", "origin", "main"]

    def test_malformed_branch_runs_nothing(self, fetcher, runner):
        with pytest.raises(ConfigurationError, match="Invalid remote or branch"):
            fetcher.fetch_and_checkout(RefSelection.branch("origin"))

        assert runner.commands == []

    def test_chooser_runs_after_fetch(self, fetcher, runner):
        seen = []

        def chooser(source):
            seen.append(list(runner.commands))
            return RefSelection.tag("v2.0.0")

        applied = fetcher.fetch_and_checkout(chooser)

        assert applied.kind is RefKind.TAG
        assert seen[0] == [["git", "fetch", "--all"], ["git", "checkout", "main"]]
        assert runner.commands[-1] == ["git", "checkout", "v2.0.0"]

    def test_chooser_result_is_validated(self, fetcher, runner):
        with pytest.raises(ConfigurationError):
            fetcher.fetch_and_checkout(lambda source: RefSelection.branch("/main"))

        assert len(runner.commands) == 2


class TestEnsure:

    def test_existing_checkout_with_remote(self, fetcher, runner):
        fetcher.ensure()
        assert runner.commands == []

    def test_adds_missing_remote(self, config, resolver):
        runner = RecordingRunner(responses={("git", "remote"): ""})
        SourceFetcher(config, resolver, runner).ensure()

        assert runner.commands == [
            ["git", "remote", "add", "origin", "https://example.com/team/app.git"]
        ]

    def test_initializes_new_checkout(self, config, resolver, deploy_root):
        (deploy_root / "repo" / ".git").rmdir()
        runner = RecordingRunner(responses={("git", "remote"): ""})

        SourceFetcher(config, resolver, runner).ensure()

        assert runner.names() == ["git", "git"]
        assert runner.commands[0] == ["git", "init"]

    def test_missing_remote_without_url(self, resolver):
        runner = RecordingRunner(responses={("git", "remote"): ""})
        fetcher = SourceFetcher(DeployConfig(), resolver, runner)

        with pytest.raises(ConfigurationError, match="Git.Repo"):
            fetcher.ensure()


class TestQueries:

    def test_available_tags_newest_first(self, config, resolver):
        tags = "\n".join(["v1.9.0", "v1.10.0", "v1.2.3", "nightly"]) + "\n"
        runner = RecordingRunner(responses={("git", "tag", "-l"): tags})

        assert SourceFetcher(config, resolver, runner).available_tags() == [
            "v1.10.0", "v1.9.0", "v1.2.3", "nightly"
        ]

    def test_tag_filter_and_limit(self, resolver):
        config = DeployConfig.from_dict({"Git": {"TagFilter": "v*"}})
        tags = "\n".join(f"v1.{minor}.0" for minor in range(15))
        runner = RecordingRunner(responses={("git", "tag", "-l", "v*"): tags})

        found = SourceFetcher(config, resolver, runner).available_tags()

        assert len(found) == 10
        assert found[0] == "v1.14.0"
        assert runner.captured[-1] == ["git", "tag", "-l", "v*"]

    def test_available_branches_skip_symbolic_refs(self, config, resolver):
        branches = "  origin/HEAD -> origin/main\n  origin/main\n  origin/release/2.x\n"
        runner = RecordingRunner(responses={("git", "branch", "-r"): branches})

        assert SourceFetcher(config, resolver, runner).available_branches() == [
            "origin/main", "origin/release/2.x"
        ]


class TestGitHelpers:

    def test_split_remote_branch(self):
        assert split_remote_branch("origin/main") == ("origin", "main")
        assert split_remote_branch("origin/feature/x") == ("origin", "feature/x")

    @pytest.mark.parametrize("ref", ["origin", "origin/", "/main", ""])
    def test_split_rejects_malformed(self, ref):
        with pytest.raises(ConfigurationError):
            split_remote_branch(ref)

    def test_sort_tags(self):
        assert sort_tags(["1.0", "v2.0.0rc1", "v2.0.0", "beta"]) == ["v2.0.0", "v2.0.0rc1", "1.0", "beta"]
