"""Tests for pane context resolution."""

import asyncio

import pytest

from panewatch.monitor.context import is_agent_worktree_path, is_same_path, resolve_pane_context
from panewatch.types import PaneResolvedContext, ResolvedWorktreeStatus


class Recorder:
    """Async callable returning a fixed value and recording its arguments."""

    def __init__(self, value=None, error: Exception | None = None):
        self.value = value
        self.error = error
        self.calls: list[tuple] = []

    async def __call__(self, *args):
        self.calls.append(args)
        if self.error is not None:
            raise self.error
        return self.value


def resolve(current_path, repo_root, snapshot=None, branch=None, pr_created=None):
    return asyncio.run(
        resolve_pane_context(
            current_path,
            repo_root,
            resolve_worktree_status=snapshot,
            resolve_branch=branch,
            resolve_pr_created=pr_created,
        )
    )


class TestIsSamePath:
    def test_ignores_trailing_separators(self):
        assert is_same_path("/tmp/project/", "/tmp/project")

    def test_rejects_empty(self):
        assert not is_same_path("/", "/")
        assert not is_same_path(None, "/tmp")
        assert not is_same_path("", "")

    def test_case_sensitive(self):
        assert not is_same_path("/tmp/Project", "/tmp/project")


class TestIsAgentWorktreePath:
    @pytest.mark.parametrize(
        "path",
        [
            "/repo/.worktree/feature-a",
            "/repo/.worktree",
            ".worktree/x",
            "C:\\repo\\.worktree\\x",
        ],
    )
    def test_matches_whole_segment(self, path):
        assert is_agent_worktree_path(path)

    @pytest.mark.parametrize(
        "path",
        [
            None,
            "",
            "/repo/.worktrees/x",
            "/repo/my.worktree/x",
            "/repo/.Worktree/x",
            "/repo/feature",
        ],
    )
    def test_rejects_other_paths(self, path):
        assert not is_agent_worktree_path(path)


class TestResolvePaneContext:
    def test_trusted_snapshot_skips_branch_lookup(self):
        snapshot = ResolvedWorktreeStatus(
            repo_root="/tmp/project",
            worktree_path="/tmp/project",
            branch="feature/x",
            worktree_dirty=True,
        )
        branch = Recorder("main")

        result = resolve("/tmp/project", Recorder("/tmp/project"), lambda path: snapshot, branch)

        assert result.repo_root == "/tmp/project"
        assert result.branch == "feature/x"
        assert result.worktree_path == "/tmp/project"
        assert result.worktree_dirty is True
        assert branch.calls == []

    def test_mismatched_snapshot_is_dropped(self):
        snapshot = ResolvedWorktreeStatus(
            repo_root="/tmp/project",
            worktree_path="/tmp/project",
            branch="feature/x",
            worktree_dirty=True,
            worktree_locked=True,
            worktree_merged=False,
        )
        branch = Recorder("sub-main")

        result = resolve(
            "/tmp/project/submodule",
            Recorder("/tmp/project/submodule"),
            lambda path: snapshot,
            branch,
        )

        assert result == PaneResolvedContext(repo_root="/tmp/project/submodule", branch="sub-main")
        assert branch.calls == [("/tmp/project/submodule",)]

    def test_snapshot_trusted_when_canonical_root_unknown(self):
        snapshot = ResolvedWorktreeStatus(repo_root="/repo", worktree_path="/repo/.worktree/a", branch="a")

        result = resolve("/repo/.worktree/a", Recorder(None), lambda path: snapshot)

        assert result.repo_root == "/repo"
        assert result.worktree_path == "/repo/.worktree/a"
        assert result.branch == "a"

    def test_trailing_separator_on_snapshot_path_still_matches(self):
        snapshot = ResolvedWorktreeStatus(repo_root="/repo", worktree_path="/repo/", branch="main")

        result = resolve("/repo", Recorder("/repo"), lambda path: snapshot)

        assert result.worktree_path == "/repo/"
        assert result.branch == "main"

    def test_async_snapshot_resolver(self):
        snapshot = ResolvedWorktreeStatus(repo_root="/repo", worktree_path="/repo", branch="main")

        result = resolve("/repo", Recorder("/repo"), Recorder(snapshot))

        assert result.branch == "main"

    def test_throwing_snapshot_falls_back(self):
        def broken(path):
            raise RuntimeError("vw missing")

        result = resolve("/repo", Recorder("/repo"), broken, Recorder("main"))

        assert result == PaneResolvedContext(repo_root="/repo", branch="main")

    def test_none_snapshot_falls_back(self):
        result = resolve("/repo", Recorder("/repo"), lambda path: None, Recorder("main"))

        assert result == PaneResolvedContext(repo_root="/repo", branch="main")

    def test_missing_optional_resolvers_yield_none(self):
        result = resolve("/repo", Recorder("/repo"))

        assert result == PaneResolvedContext(repo_root="/repo")

    def test_failing_lookups_yield_none(self):
        result = resolve(
            "/repo",
            Recorder(error=RuntimeError("git")),
            branch=Recorder(error=RuntimeError("git")),
        )

        assert result == PaneResolvedContext()

    def test_pr_lookup_for_agent_worktree(self):
        snapshot = ResolvedWorktreeStatus(
            repo_root="/repo", worktree_path="/repo/.worktree/feat", branch="feat"
        )
        pr_created = Recorder(True)

        result = resolve("/repo/.worktree/feat", Recorder("/repo/.worktree/feat"), lambda path: snapshot, None, pr_created)

        assert result.worktree_pr_created is True
        assert pr_created.calls == [("/repo", "feat")]

    def test_no_pr_lookup_for_plain_checkout(self):
        snapshot = ResolvedWorktreeStatus(repo_root="/repo", worktree_path="/repo", branch="main")
        pr_created = Recorder(True)

        result = resolve("/repo", Recorder("/repo"), lambda path: snapshot, None, pr_created)

        assert result.worktree_pr_created is None
        assert pr_created.calls == []

    def test_no_pr_lookup_for_untrusted_snapshot(self):
        snapshot = ResolvedWorktreeStatus(
            repo_root="/repo", worktree_path="/repo/.worktree/feat", branch="feat"
        )
        pr_created = Recorder(True)

        result = resolve("/elsewhere", Recorder("/elsewhere"), lambda path: snapshot, Recorder("x"), pr_created)

        assert result.worktree_pr_created is None
        assert pr_created.calls == []

    def test_pr_lookup_failure_yields_none(self):
        snapshot = ResolvedWorktreeStatus(
            repo_root="/repo", worktree_path="/repo/.worktree/feat", branch="feat"
        )

        result = resolve(
            "/repo/.worktree/feat",
            Recorder("/repo/.worktree/feat"),
            lambda path: snapshot,
            None,
            Recorder(error=RuntimeError("gh")),
        )

        assert result.worktree_pr_created is None
        assert result.worktree_path == "/repo/.worktree/feat"

    def test_non_callable_resolver_raises(self):
        with pytest.raises(TypeError):
            resolve("/repo", Recorder("/repo"), branch="main")

    def test_non_callable_repo_root_raises(self):
        with pytest.raises(TypeError):
            resolve("/repo", None)
