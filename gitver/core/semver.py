"""
gitver.core.semver — Semantic version value type parsed from tag names.

A tag name is only a version when the configured tag prefix matches at its
start and the remainder matches::

    MAJOR.MINOR.PATCH[-LABEL[.NUMBER] | -NUMBER][+BUILD]

Parsing never raises from ``try_parse``; tags that are not versions are
simply ignored by callers.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field
from typing import Iterable

# A label must end in a non-digit so a trailing number is never split; an
# all-digit pre-release ("1.2.3-100") is a number with an empty label.
_VERSION_RE = re.compile(
    r"(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-(?:(?P<label>[0-9A-Za-z-]*?[A-Za-z-])(?:[.-]?(?P<number>\d+))?|(?P<bare_number>\d+)))?"
    r"(?:\+(?P<build>.+))?"
)


@functools.total_ordering
@dataclass(frozen=True)
class SemanticVersion:
    """
    An immutable, totally ordered ``major.minor.patch`` version.

    A release sorts above every pre-release of the same ``major.minor.patch``.
    Build metadata is carried for display but ignored by comparisons.
    """
    major: int
    minor: int
    patch: int
    pre_release_label: str | None = None
    pre_release_number: int | None = None
    build_metadata: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if min(self.major, self.minor, self.patch) < 0:
            raise ValueError("Version components must be non-negative")
        if self.pre_release_number is not None:
            if self.pre_release_label is None:
                raise ValueError("Pre-release number requires a pre-release label")
            if self.pre_release_number < 0:
                raise ValueError("Pre-release number must be non-negative")

    # -- Parsing -----------------------------------------------------------

    @classmethod
    def try_parse(cls, tag_name: str, tag_prefix: str | None = "") -> SemanticVersion | None:
        """
        Parse *tag_name* after stripping *tag_prefix* (a regex) from its start.

        Returns ``None`` when the prefix does not match, the prefix is not a
        valid regex, or the remainder is not a semantic version.
        """
        try:
            prefix = re.match(tag_prefix or "", tag_name, re.IGNORECASE)
        except re.error:
            return None
        if prefix is None:
            return None

        m = _VERSION_RE.fullmatch(tag_name[prefix.end():])
        if m is None:
            return None

        label, number = m.group("label"), m.group("number")
        if m.group("bare_number") is not None:
            label, number = "", m.group("bare_number")
        return cls(
            major=int(m.group("major")),
            minor=int(m.group("minor")),
            patch=int(m.group("patch")),
            pre_release_label=label,
            pre_release_number=int(number) if number is not None else None,
            build_metadata=m.group("build"),
        )

    @classmethod
    def parse(cls, tag_name: str, tag_prefix: str | None = "") -> SemanticVersion:
        version = cls.try_parse(tag_name, tag_prefix)
        if version is None:
            raise ValueError(f"'{tag_name}' is not a semantic version")
        return version

    # -- Ordering ----------------------------------------------------------

    @property
    def is_pre_release(self) -> bool:
        return self.pre_release_label is not None

    def _sort_key(self) -> tuple[int, int, int, int, str, int]:
        return (
            self.major,
            self.minor,
            self.patch,
            0 if self.is_pre_release else 1,
            self.pre_release_label or "",
            -1 if self.pre_release_number is None else self.pre_release_number,
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre_release_label is not None:
            text += f"-{self.pre_release_label}"
            if self.pre_release_number is not None:
                sep = "." if self.pre_release_label else ""
                text += f"{sep}{self.pre_release_number}"
        if self.build_metadata:
            text += f"+{self.build_metadata}"
        return text


def highest(versions: Iterable[SemanticVersion]) -> SemanticVersion | None:
    """Return the greatest version, or ``None`` for an empty iterable."""
    return max(versions, default=None)
