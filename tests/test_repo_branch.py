"""Tests for cached branch resolution."""

import asyncio

from panewatch.cache import TTLCache
from panewatch.monitor.repo_branch import BranchSource
from panewatch.vcs import GitError


class FakeGit:
    def __init__(self, stdout: str = "main\n", error: Exception | None = None):
        self.stdout = stdout
        self.error = error
        self.calls: list[tuple[str, list[str], dict]] = []

    async def __call__(self, cwd, args, **options):
        self.calls.append((cwd, list(args), options))
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.stdout


class TestBranchResolver:
    def test_runs_show_current(self, clock):
        git = FakeGit()
        resolver = BranchSource(git, TTLCache(3000, 1000, clock=clock))

        assert asyncio.run(resolver.resolve("/repo/")) == "main"
        assert git.calls == [
            ("/repo", ["branch", "--show-current"], {"timeout_ms": 2000, "max_buffer": 2_000_000, "allow_stdout_on_error": False})
        ]

    def test_concurrent_lookups_share_one_call(self, clock):
        git = FakeGit()
        resolver = BranchSource(git, TTLCache(3000, 1000, clock=clock))

        async def together():
            return await asyncio.gather(*(resolver.resolve("/repo") for _ in range(5)))

        assert asyncio.run(together()) == ["main"] * 5
        assert len(git.calls) == 1

    def test_detached_head_is_none(self, clock):
        resolver = BranchSource(FakeGit(stdout="\n"), TTLCache(3000, 1000, clock=clock))

        assert asyncio.run(resolver.resolve("/repo")) is None

    def test_git_error_is_none(self, clock):
        resolver = BranchSource(FakeGit(error=GitError("not a repo")), TTLCache(3000, 1000, clock=clock))

        assert asyncio.run(resolver.resolve("/tmp")) is None

    def test_empty_path_skips_git(self, clock):
        git = FakeGit()
        resolver = BranchSource(git, TTLCache(3000, 1000, clock=clock))

        assert asyncio.run(resolver.resolve("")) is None
        assert git.calls == []
