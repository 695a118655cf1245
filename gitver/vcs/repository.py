"""
gitver.vcs.repository — Read-only access to a Git repository.

``Repository`` is the protocol the resolution engine reads through;
``GitRepository`` implements it on top of the ``git`` CLI.  Nothing here
writes to the repository.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Iterable, Protocol

from gitver.core.errors import RepositoryError
from gitver.core.models import Branch, Commit, Tag

logger = logging.getLogger("gitver.vcs.repository")

_FIELD_SEP = "\x00"           # Separator in for-each-ref output
_FORMAT_SEP = "%00"            # Same separator, as a for-each-ref format escape


class Repository(Protocol):
    """The repository queries version-context resolution depends on."""

    def head(self) -> Branch | None: ...

    def commits(self) -> Iterable[Commit]: ...

    def branches(self) -> list[Branch]: ...

    def tags(self) -> list[Tag]: ...

    def is_ancestor(self, commit: Commit, branch: Branch) -> bool:
        """Whether *commit* is reachable from the tip of *branch*."""
        ...


def branches_containing_commit(
    repository: Repository, commit: Commit, only_tracked: bool = True
) -> list[Branch]:
    """
    Real branches that contain *commit*.

    Branches whose tip *is* the commit win outright; only when there are
    none is the ancestry of every branch consulted.
    """
    candidates = [
        b for b in repository.branches()
        if not b.is_detached
        and not b.name.endswith("/HEAD")
        and (b.is_tracked or not only_tracked)
    ]

    direct = [b for b in candidates if b.tip == commit]
    if direct:
        return direct

    return [b for b in candidates if repository.is_ancestor(commit, b)]


class GitRepository:
    """``Repository`` backed by the ``git`` executable."""

    def __init__(self, path: Path | str = ".") -> None:
        self._path = Path(path)
        try:
            top = self._git("rev-parse", "--show-toplevel").strip()
        except RepositoryError as exc:
            raise RepositoryError(f"Not a Git repository: {self._path}") from exc
        self.root = Path(top)

    # ------------------------------------------------------------------
    # Repository protocol
    # ------------------------------------------------------------------

    def head(self) -> Branch | None:
        sha = self._rev_parse("HEAD")
        if sha is None:
            return None  # Unborn branch (no commits yet)
        tip = Commit(sha=sha)

        ref = self._run("symbolic-ref", "-q", "HEAD")
        if ref.returncode != 0:
            logger.debug("HEAD is detached at %s", tip.short_sha)
            return Branch.detached(tip)

        refname = ref.stdout.strip()
        for branch in self.branches():
            if branch.name == _short_ref(refname):
                return branch
        return Branch(name=_short_ref(refname), tip=tip)

    def commits(self) -> Iterable[Commit]:
        out = self._git("rev-list", "--all")
        for line in out.splitlines():
            if line.strip():
                yield Commit(sha=line.strip())

    def branches(self) -> list[Branch]:
        fmt = _FORMAT_SEP.join(["%(refname)", "%(objectname)", "%(upstream)"])
        out = self._git("for-each-ref", f"--format={fmt}", "refs/heads", "refs/remotes")

        result: list[Branch] = []
        for line in out.splitlines():
            parts = line.split(_FIELD_SEP)
            if len(parts) != 3:
                continue
            refname, sha, upstream = parts
            if refname.startswith("refs/remotes/"):
                name = refname[len("refs/remotes/"):]
                if name.endswith("/HEAD"):
                    continue
                result.append(Branch(
                    name=name,
                    tip=Commit(sha=sha),
                    is_remote=True,
                    remote=name.split("/", 1)[0],
                ))
            else:
                result.append(Branch(
                    name=_short_ref(refname),
                    tip=Commit(sha=sha),
                    is_tracking=bool(upstream),
                ))
        return result

    def tags(self) -> list[Tag]:
        fmt = _FORMAT_SEP.join(["%(refname)", "%(objectname)", "%(*objectname)"])
        out = self._git("for-each-ref", f"--format={fmt}", "refs/tags")

        result: list[Tag] = []
        for line in out.splitlines():
            parts = line.split(_FIELD_SEP)
            if len(parts) != 3:
                continue
            refname, sha, peeled = parts
            result.append(Tag(name=_short_ref(refname), target=Commit(sha=peeled or sha)))
        return result

    def is_ancestor(self, commit: Commit, branch: Branch) -> bool:
        result = self._run("merge-base", "--is-ancestor", commit.sha, branch.tip.sha)
        return result.returncode == 0

    # ------------------------------------------------------------------
    # Git helpers
    # ------------------------------------------------------------------

    def _run(self, *args: str) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(
                ["git", *args],
                capture_output=True,
                text=True,
                cwd=str(self._path),
                timeout=30,
            )
        except (FileNotFoundError, NotADirectoryError, ValueError, subprocess.TimeoutExpired) as exc:
            raise RepositoryError(f"git {args[0]} failed: {exc}") from exc

    def _git(self, *args: str) -> str:
        """Run a Git command and return stdout, raising on failure."""
        result = self._run(*args)
        if result.returncode != 0:
            raise RepositoryError(
                f"git {' '.join(args)} failed: {result.stderr.strip()}",
                details={"returncode": result.returncode},
            )
        return result.stdout

    def _rev_parse(self, rev: str) -> str | None:
        result = self._run("rev-parse", "--verify", "-q", rev)
        if result.returncode != 0:
            return None
        return result.stdout.strip()


def _short_ref(refname: str) -> str:
    for prefix in ("refs/heads/", "refs/remotes/", "refs/tags/"):
        if refname.startswith(prefix):
            return refname[len(prefix):]
    return refname
