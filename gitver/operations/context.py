"""
gitver.operations.context — Build the ``VersionContext`` for a repository.

Resolution is a short pipeline of pure steps:

    current commit → current branch → effective configuration → tagged version

Each step reads from the repository only; the result is frozen.
"""

from __future__ import annotations

import logging

from gitver.core.errors import NoBranchError
from gitver.core.models import Branch, Commit, GitVersionConfig, Tag, VersionContext
from gitver.core.semver import SemanticVersion, highest
from gitver.operations.branch_guess import guess_branch
from gitver.operations.configuration import resolve_effective_configuration
from gitver.vcs.repository import Repository, branches_containing_commit

logger = logging.getLogger("gitver.operations.context")


def build_context(
    repository: Repository,
    config: GitVersionConfig,
    only_tracked_branches: bool = True,
    commit_id: str | None = None,
    branch: Branch | None = None,
) -> VersionContext:
    """
    Resolve which commit, branch, and configuration apply right now.

    *branch* defaults to the repository HEAD.  *commit_id* is advisory: if
    it cannot be found the branch tip is used instead.
    """
    if branch is None:
        branch = repository.head()
    if branch is None:
        raise NoBranchError()

    commit = resolve_current_commit(repository, branch, commit_id)
    current_branch = resolve_current_branch(repository, config, branch, commit, only_tracked_branches)
    _, configuration = resolve_effective_configuration(commit, current_branch, config)
    tagged = current_commit_tagged_version(repository.tags(), commit, configuration.tag_prefix)

    return VersionContext(
        current_commit=commit,
        current_branch=current_branch,
        configuration=configuration,
        current_commit_tagged_version=tagged,
        only_evaluate_tracked_branches=only_tracked_branches,
    )


def resolve_current_commit(repository: Repository, branch: Branch, commit_id: str | None) -> Commit:
    if commit_id and commit_id.strip():
        wanted = commit_id.strip().lower()
        logger.info("Searching for specific commit '%s'", commit_id)
        for commit in repository.commits():
            if commit.sha.lower() == wanted:
                return commit
        logger.warning("Commit '%s' specified but not found", commit_id)

    logger.info("Using latest commit on specified branch")
    return branch.tip


def resolve_current_branch(
    repository: Repository,
    config: GitVersionConfig,
    branch: Branch,
    commit: Commit,
    only_tracked_branches: bool,
) -> Branch:
    if not branch.is_detached:
        return branch

    containing = branches_containing_commit(repository, commit, only_tracked_branches)
    guess = guess_branch(containing, config)
    if guess is None:
        logger.info("Detached at %s; keeping unnamed branch", commit.short_sha)
        return branch
    return guess


def current_commit_tagged_version(
    tags: list[Tag], commit: Commit, tag_prefix: str
) -> SemanticVersion | None:
    """Highest version among the tags pointing exactly at *commit*."""
    versions = []
    for tag in tags:
        if tag.target != commit:
            continue
        version = SemanticVersion.try_parse(tag.name, tag_prefix)
        if version is None:
            logger.debug("Tag '%s' is not a version; ignored", tag.name)
            continue
        versions.append(version)
    return highest(versions)
