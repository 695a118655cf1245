"""
gitver.operations.branch_guess — Best-guess branch for a detached commit.

CI systems often check out a bare commit.  When that commit is reachable
from several branches, the most authoritative branch type wins, in the
order given by ``BRANCH_TYPE_PRIORITY``.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from gitver.core.models import Branch, GitVersionConfig
from gitver.operations.configuration import branch_matches

logger = logging.getLogger("gitver.operations.branch_guess")

BRANCH_TYPE_PRIORITY: tuple[str, ...] = (
    "master",
    "release",
    "hotfix",
    "develop",
    "support",
    "feature",
)

DEFAULT_REMOTE = "origin"


def guess_branch(candidates: Iterable[Branch], config: GitVersionConfig) -> Branch | None:
    """
    Pick the branch that most plausibly represents a detached commit.

    A single candidate is returned as-is.  Otherwise every candidate is
    matched against the configured patterns and the first match whose
    pattern starts with the highest-priority branch type is returned.
    ``None`` means nothing matched a known branch type.
    """
    branches = sorted(candidates, key=lambda b: b.name)
    if len(branches) == 1:
        return branches[0]

    matches = [
        (key, branch)
        for branch in branches
        for key in config.branches
        if _matches_with_remote(key, branch)
    ]

    for branch_type in BRANCH_TYPE_PRIORITY:
        for key, branch in matches:
            if key.lower().startswith(branch_type):
                logger.info(
                    "Commit is on %d branches; picked '%s' (matched '%s')",
                    len(branches), branch.name, key,
                )
                return branch

    logger.info(
        "Could not pick a branch among %s",
        ", ".join(b.name for b in branches) or "(none)",
    )
    return None


def _matches_with_remote(pattern: str, branch: Branch) -> bool:
    if branch_matches(pattern, branch):
        return True
    remote = branch.remote or DEFAULT_REMOTE
    prefixed = f"{re.escape(remote)}/(?:{pattern})"
    return re.match(prefixed, branch.name, re.IGNORECASE) is not None
