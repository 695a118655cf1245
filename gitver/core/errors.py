"""
gitver.core.errors — Exceptions raised by version-context resolution.

Only configuration defects and missing-branch input abort a resolution.
Everything else (unknown commit ids, ambiguous detached heads, tags that
are not versions) is logged and handled heuristically.
"""

from __future__ import annotations

from typing import Any


class GitVersionError(Exception):
    """Base exception for gitver errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(GitVersionError):
    """A required configuration value is missing or the config is malformed."""

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        branch_key: str | None = None,
    ) -> None:
        if message is None:
            message = (
                f"Configuration value for '{field}' for branch '{branch_key}' has no value. "
                "Set it on the branch or as a global default."
            )
        super().__init__(message, details={"field": field, "branch_key": branch_key})
        self.field = field
        self.branch_key = branch_key


class NoBranchError(GitVersionError):
    """No branch was supplied and the repository has no HEAD to default to."""

    def __init__(self) -> None:
        super().__init__("Need a branch to operate on")


class RepositoryError(GitVersionError):
    """The git repository could not be read."""
