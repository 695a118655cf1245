"""
Shared fixtures for gitver tests.

``FakeRepository`` is an in-memory ``Repository``: commits are plain shas,
ancestry is given explicitly as ``{sha: [parent shas]}``.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from gitver.core.models import Branch, Commit, GitVersionConfig, Tag


def sha(n: int) -> str:
    """Deterministic 40-char sha for commit number *n*."""
    return "abcdef" + f"{n:034x}"


class FakeRepository:
    def __init__(
        self,
        parents: dict[str, list[str]],
        branches: list[Branch],
        tags: list[Tag] | None = None,
        head: Branch | None = None,
    ) -> None:
        self._parents = parents
        self._branches = branches
        self._tags = tags or []
        self._head = head
        self.commit_queries = 0

    def head(self) -> Branch | None:
        return self._head

    def commits(self):
        self.commit_queries += 1
        return [Commit(sha=s) for s in self._parents]

    def branches(self) -> list[Branch]:
        return list(self._branches)

    def tags(self) -> list[Tag]:
        return list(self._tags)

    def is_ancestor(self, commit: Commit, branch: Branch) -> bool:
        seen: set[str] = set()
        stack = [branch.tip.sha]
        while stack:
            current = stack.pop()
            if current == commit.sha:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self._parents.get(current, []))
        return False


@pytest.fixture
def config() -> GitVersionConfig:
    return GitVersionConfig.default()


@pytest.fixture
def linear_repo() -> FakeRepository:
    """
    c1 ─ c2 ─ c3 (develop, tracking)
               └ c4 (feature/login, tracking)
    master (tracking) at c2; c2 tagged v1.0.0 and v0.9.0, c3 tagged "build-42".
    """
    c = {n: Commit(sha=sha(n)) for n in range(1, 5)}
    parents = {
        sha(1): [],
        sha(2): [sha(1)],
        sha(3): [sha(2)],
        sha(4): [sha(3)],
    }
    master = Branch(name="master", tip=c[2], is_tracking=True)
    develop = Branch(name="develop", tip=c[3], is_tracking=True)
    feature = Branch(name="feature/login", tip=c[4], is_tracking=True)
    tags = [
        Tag(name="v1.0.0", target=c[2]),
        Tag(name="v0.9.0", target=c[2]),
        Tag(name="build-42", target=c[3]),
    ]
    return FakeRepository(parents, [master, develop, feature], tags, head=develop)


# -----------------------------------------------------------------------------
# Real git repositories
# -----------------------------------------------------------------------------

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


def run_git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A real repository: master with two commits, tags, and a develop branch one commit ahead."""
    repo = tmp_path / "repo"
    repo.mkdir()
    run_git(repo, "init", "-q", "-b", "master")
    run_git(repo, "config", "user.email", "dev@example.com")
    run_git(repo, "config", "user.name", "Dev")
    run_git(repo, "config", "commit.gpgsign", "false")
    run_git(repo, "config", "tag.gpgsign", "false")

    for n in (1, 2):
        (repo / "file.txt").write_text(f"{n}\n", encoding="utf-8")
        run_git(repo, "add", "file.txt")
        run_git(repo, "commit", "-q", "-m", f"commit {n}")

    run_git(repo, "tag", "v1.9.9")
    run_git(repo, "tag", "-a", "v2.0.0", "-m", "release 2.0.0")
    run_git(repo, "tag", "not-a-version")

    run_git(repo, "checkout", "-q", "-b", "develop")
    (repo / "file.txt").write_text("3\n", encoding="utf-8")
    run_git(repo, "commit", "-q", "-am", "commit 3")
    return repo
