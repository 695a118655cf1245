"""
gitver.operations.configuration — Effective configuration for a branch.

Picks the first branch pattern (in configured order) that matches the
branch name, merges its overrides over the global defaults, and validates
that every value the version calculation needs is present.
"""

from __future__ import annotations

import logging
import re

from gitver.core.errors import ConfigurationError
from gitver.core.models import (
    Branch,
    BranchConfig,
    Commit,
    EffectiveConfiguration,
    GitVersionConfig,
)

logger = logging.getLogger("gitver.operations.configuration")

# Checked in this order; the first missing one is reported.
REQUIRED_FIELDS = (
    "mode",
    "increment",
    "prevent_increment_of_merged_branch_version",
    "track_merge_target",
    "assembly_versioning_scheme",
)


def branch_matches(pattern: str, branch: Branch) -> bool:
    """
    Case-insensitive match of *pattern* anchored at the start of the branch
    name.  Remote branches also match with their remote prefix, so
    ``origin/release-1.0`` matches ``releases?[/-]``.
    """
    if re.match(pattern, branch.name, re.IGNORECASE):
        return True
    if branch.is_remote and branch.remote:
        prefixed = f"{re.escape(branch.remote)}/(?:{pattern})"
        return re.match(prefixed, branch.name, re.IGNORECASE) is not None
    return False


def find_branch_config(branch: Branch, config: GitVersionConfig) -> tuple[str, BranchConfig]:
    """
    First ``(pattern, BranchConfig)`` matching *branch*, in mapping order.

    Overlapping patterns are a configuration-authoring concern; the first
    one configured wins.  No match yields ``("", BranchConfig())`` so the
    global defaults apply unchanged.
    """
    matches = [(key, value) for key, value in config.branches.items() if branch_matches(key, branch)]
    if not matches:
        logger.debug("No branch configuration matches '%s'; using global defaults", branch.name)
        return "", BranchConfig()
    if len(matches) > 1:
        logger.debug(
            "Branch '%s' matches %d patterns (%s); using '%s'",
            branch.name, len(matches), ", ".join(k for k, _ in matches), matches[0][0],
        )
    return matches[0]


def resolve_effective_configuration(
    commit: Commit, branch: Branch, config: GitVersionConfig
) -> tuple[str, EffectiveConfiguration]:
    """
    Merge the matching branch override over the global defaults for *branch*.

    Raises ``ConfigurationError`` naming the first required value that is
    unset at both levels.
    """
    key, override = find_branch_config(branch, config)
    logger.debug("Resolving configuration for %s at %s using '%s'", branch.name, commit.short_sha, key)

    merged = {
        "mode": _pick(override.mode, config.mode),
        "increment": _pick(override.increment, config.increment),
        "tag": override.tag,
        "tag_number_pattern": override.tag_number_pattern,
        "prevent_increment_of_merged_branch_version": _pick(
            override.prevent_increment_of_merged_branch_version,
            config.prevent_increment_of_merged_branch_version,
        ),
        "track_merge_target": _pick(override.track_merge_target, config.track_merge_target),
        "assembly_versioning_scheme": config.assembly_versioning_scheme,
    }

    for name in REQUIRED_FIELDS:
        if merged[name] is None:
            raise ConfigurationError(field=name, branch_key=key)

    effective = EffectiveConfiguration(
        branch_key=key,
        tag_prefix=config.tag_prefix,
        next_version=config.next_version,
        continuous_delivery_fallback_tag=config.continuous_delivery_fallback_tag,
        **merged,
    )
    return key, effective


def _pick(override, default):
    return override if override is not None else default
