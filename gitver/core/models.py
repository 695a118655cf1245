"""
gitver.core.models — Pydantic schemas for repository snapshots, versioning
configuration, and the resolved version context.

Configuration is two-level: global defaults on ``GitVersionConfig`` plus an
ordered mapping of branch-name regex → ``BranchConfig`` overrides whose
fields are all optional.  Merging the two for one branch yields a frozen
``EffectiveConfiguration``.
"""

from __future__ import annotations

import json
import os
import re
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_serializer,
    field_validator,
)

from gitver.core.errors import ConfigurationError
from gitver.core.semver import SemanticVersion

CONFIG_FILE_NAME = "GitVersion.json"
DETACHED_BRANCH_NAME = "(no branch)"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class VersioningMode(StrEnum):
    CONTINUOUS_DELIVERY = "continuous_delivery"
    CONTINUOUS_DEPLOYMENT = "continuous_deployment"
    MANUAL_DEPLOYMENT = "manual_deployment"


class IncrementStrategy(StrEnum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    NONE = "none"


class AssemblyVersioningScheme(StrEnum):
    MAJOR_MINOR_PATCH_TAG = "major_minor_patch_tag"
    MAJOR_MINOR_PATCH = "major_minor_patch"
    MAJOR_MINOR = "major_minor"
    MAJOR = "major"
    NONE = "none"


class BranchingModel(StrEnum):
    """Branching-model presets offered by ``gitver init``."""
    GITFLOW = "gitflow"
    GITHUBFLOW = "githubflow"


# ---------------------------------------------------------------------------
# Repository snapshot
# ---------------------------------------------------------------------------

class Commit(BaseModel):
    """A commit, identified by its full SHA."""
    model_config = ConfigDict(frozen=True)

    sha: str

    @property
    def short_sha(self) -> str:
        return self.sha[:8]


class Branch(BaseModel):
    """A named pointer to a tip commit (local, remote-tracking, or detached)."""
    model_config = ConfigDict(frozen=True)

    name: str
    tip: Commit
    is_remote: bool = False
    remote: str | None = None               # e.g. "origin" for "origin/develop"
    is_tracking: bool = False               # Local branch with an upstream
    is_detached: bool = False

    @property
    def is_tracked(self) -> bool:
        return self.is_remote or self.is_tracking

    @classmethod
    def detached(cls, tip: Commit) -> "Branch":
        """Pseudo-branch for a checkout that has no branch name."""
        return cls(name=DETACHED_BRANCH_NAME, tip=tip, is_detached=True)


class Tag(BaseModel):
    """A tag; ``target`` is the peeled commit for annotated tags."""
    model_config = ConfigDict(frozen=True)

    name: str
    target: Commit


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class BranchConfig(BaseModel):
    """Per-branch overrides.  ``None`` means "use the global default"."""
    mode: VersioningMode | None = None
    increment: IncrementStrategy | None = None
    tag: str | None = None                  # Pre-release label template
    tag_number_pattern: str | None = None
    prevent_increment_of_merged_branch_version: bool | None = None
    track_merge_target: bool | None = None


class GitVersionConfig(BaseModel):
    """
    Global versioning configuration.

    Every default may be explicitly nulled in a config file; the resolver
    reports that as a ``ConfigurationError`` rather than guessing a value.
    """
    mode: VersioningMode | None = VersioningMode.CONTINUOUS_DELIVERY
    increment: IncrementStrategy | None = IncrementStrategy.PATCH
    tag_prefix: str = "[vV]"
    next_version: str | None = None
    assembly_versioning_scheme: AssemblyVersioningScheme | None = AssemblyVersioningScheme.MAJOR_MINOR_PATCH
    continuous_delivery_fallback_tag: str = "ci"
    prevent_increment_of_merged_branch_version: bool | None = False
    track_merge_target: bool | None = False
    branches: dict[str, BranchConfig] = Field(default_factory=dict)

    @field_validator("next_version")
    @classmethod
    def _check_next_version(cls, value: str | None) -> str | None:
        if value:
            SemanticVersion.parse(value)
        return value

    @field_validator("tag_prefix")
    @classmethod
    def _check_tag_prefix(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid tag prefix pattern '{value}': {exc}") from exc
        return value

    @field_validator("branches")
    @classmethod
    def _check_branch_patterns(cls, value: dict[str, BranchConfig]) -> dict[str, BranchConfig]:
        for key in value:
            try:
                re.compile(key)
            except re.error as exc:
                raise ValueError(f"Invalid branch pattern '{key}': {exc}") from exc
        return value

    # -- Presets -----------------------------------------------------------

    @classmethod
    def default(cls) -> "GitVersionConfig":
        """The GitFlow preset."""
        return cls(branches=_gitflow_branches())

    @classmethod
    def githubflow(cls) -> "GitVersionConfig":
        return cls(branches=_githubflow_branches())

    # -- Persistence -------------------------------------------------------

    @classmethod
    def load(cls, path: Path) -> "GitVersionConfig":
        """Load from a JSON file, returning the GitFlow preset if it doesn't exist."""
        if not path.exists():
            return cls.default()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Could not parse {path}: {exc}") from exc
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration in {path}: {exc}") from exc

    def save(self, path: Path) -> Path:
        """Persist to disk. Returns the file path."""
        path.write_text(
            json.dumps(self.model_dump(mode="json"), indent=2) + "\n",
            encoding="utf-8",
        )
        return path

    @classmethod
    def for_project(cls, project_root: Path | None = None, **overrides: Any) -> "GitVersionConfig":
        """
        Build the configuration for a project directory.

        Resolution order (highest priority first):
          1. Explicit ``overrides`` keyword arguments
          2. Environment variables (GITVER_NEXT_VERSION, GITVER_TAG_PREFIX, GITVER_MODE)
          3. ``GitVersion.json`` in *project_root* (default: CWD)
          4. Built-in GitFlow defaults
        """
        root = project_root or Path.cwd()
        base = cls.load(root / CONFIG_FILE_NAME)

        env_map = {
            "next_version": os.getenv("GITVER_NEXT_VERSION"),
            "tag_prefix": os.getenv("GITVER_TAG_PREFIX"),
            "mode": os.getenv("GITVER_MODE"),
        }
        updates = {k: v for k, v in env_map.items() if v}
        updates.update(overrides)
        if not updates:
            return base

        try:
            return cls.model_validate({**base.model_dump(), **updates})
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration override: {exc}") from exc


def _gitflow_branches() -> dict[str, BranchConfig]:
    return {
        r"master$|main$": BranchConfig(
            tag="",
            increment=IncrementStrategy.PATCH,
            prevent_increment_of_merged_branch_version=True,
        ),
        r"releases?[/-]": BranchConfig(
            tag="beta",
            increment=IncrementStrategy.PATCH,
            prevent_increment_of_merged_branch_version=True,
        ),
        r"features?[/-]": BranchConfig(tag="use_branch_name"),
        r"(pull|pull\-requests|pr)[/-]": BranchConfig(
            tag="PullRequest",
            tag_number_pattern=r"[/-](?P<number>\d+)[-/]",
        ),
        r"hotfix(es)?[/-]": BranchConfig(tag="beta", increment=IncrementStrategy.PATCH),
        r"support[/-]": BranchConfig(
            tag="",
            increment=IncrementStrategy.PATCH,
            prevent_increment_of_merged_branch_version=True,
        ),
        r"develop(ment)?$|dev$": BranchConfig(
            mode=VersioningMode.CONTINUOUS_DEPLOYMENT,
            tag="unstable",
            increment=IncrementStrategy.MINOR,
            track_merge_target=True,
        ),
    }


def _githubflow_branches() -> dict[str, BranchConfig]:
    gitflow = _gitflow_branches()
    keep = (r"master$|main$", r"releases?[/-]", r"features?[/-]", r"(pull|pull\-requests|pr)[/-]")
    return {key: gitflow[key] for key in keep}


def config_for_model(model: BranchingModel) -> GitVersionConfig:
    if model is BranchingModel.GITHUBFLOW:
        return GitVersionConfig.githubflow()
    return GitVersionConfig.default()


# ---------------------------------------------------------------------------
# Resolution results
# ---------------------------------------------------------------------------

class EffectiveConfiguration(BaseModel):
    """Global defaults merged with the matching branch override; all required values concrete."""
    model_config = ConfigDict(frozen=True)

    branch_key: str                         # Pattern that matched ("" when none did)
    mode: VersioningMode
    increment: IncrementStrategy
    prevent_increment_of_merged_branch_version: bool
    track_merge_target: bool
    assembly_versioning_scheme: AssemblyVersioningScheme
    tag_prefix: str
    tag: str | None = None
    tag_number_pattern: str | None = None
    next_version: str | None = None
    continuous_delivery_fallback_tag: str = "ci"


class VersionContext(BaseModel):
    """Where versioning is being run: commit, branch, configuration, and existing version tag."""
    model_config = ConfigDict(frozen=True)

    current_commit: Commit
    current_branch: Branch
    configuration: EffectiveConfiguration
    current_commit_tagged_version: SemanticVersion | None = None
    only_evaluate_tracked_branches: bool = True

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_current_commit_tagged(self) -> bool:
        return self.current_commit_tagged_version is not None

    @field_serializer("current_commit_tagged_version")
    def _serialize_version(self, version: SemanticVersion | None) -> str | None:
        return str(version) if version is not None else None
