"""
Version and branch data model for releasekeeper.

Release-history feeds mix legacy core-prefixed versions (``8.x-1.2``) with
plain semantic ones (``2.0.0-rc1``). This module parses both into a single
:class:`Version` value with a total order:

1. numeric ``(major, minor, patch)`` tuple, missing parts counting as ``0``
2. stability rank (``alpha < beta < rc < stable``)
3. stability number (``beta1 < beta2``)
4. build qualifier (``+build.5``)

Ordering is delegated to :class:`packaging.version.Version` by mapping each
value onto its PEP 440 spelling. The legacy core prefix is kept for display
only and never takes part in comparisons.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from functools import cached_property, total_ordering
from typing import FrozenSet, Optional, Tuple, Union

from packaging.version import InvalidVersion
from packaging.version import Version as PEP440Version

from releasekeeper.exceptions import ParseError

_VERSION_PATTERN = re.compile(
    r"""
    ^
    (?:(?P<core>\d+)\.x-)?                      # legacy core prefix, "8.x-"
    (?P<major>\d+)
    (?:\.(?P<minor>\d+))?
    (?:\.(?P<patch>\d+))?
    (?:-(?P<stability>alpha|beta|rc)(?P<number>\d*))?
    (?:\+(?P<extra>[0-9a-z]+(?:[._-][0-9a-z]+)*))?
    $
    """,
    re.VERBOSE | re.IGNORECASE,
)

_BRANCH_PATTERN = re.compile(
    r"^(?:(?P<core>\d+)\.x-)?(?P<major>\d+)(?:\.(?P<minor>\d+))?\.?$",
    re.IGNORECASE,
)


class Stability(IntEnum):
    """Release stability, ordered from least to most stable."""

    ALPHA = 0
    BETA = 1
    RC = 2
    STABLE = 3

    @property
    def pep440_tag(self) -> str:
        return {Stability.ALPHA: "a", Stability.BETA: "b", Stability.RC: "rc"}.get(
            self, ""
        )

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "Stability":
        if not tag:
            return cls.STABLE
        return cls[tag.upper()]


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A parsed release version.

    Attributes:
        major: Major version number; defines the release branch.
        minor: Minor version number, if present.
        patch: Patch version number, if present.
        stability: Stability tag of the release.
        stability_number: Number following the stability tag (``beta2``).
        extra: Build qualifier following ``+``.
        core: Legacy core compatibility prefix (``8`` for ``8.x-1.0``).
    """

    major: int
    minor: Optional[int] = None
    patch: Optional[int] = None
    stability: Stability = Stability.STABLE
    stability_number: Optional[int] = None
    extra: Optional[str] = None
    core: Optional[int] = None

    # ------------------------------------------------------------------
    # Derived properties
    # ------------------------------------------------------------------

    @property
    def release(self) -> Tuple[int, int, int]:
        """Numeric tuple with missing parts normalized to ``0``."""
        return (self.major, self.minor or 0, self.patch or 0)

    @property
    def is_prerelease(self) -> bool:
        return self.stability is not Stability.STABLE

    @property
    def is_stable(self) -> bool:
        return self.stability is Stability.STABLE

    @cached_property
    def sort_key(self) -> PEP440Version:
        """PEP 440 equivalent used for every comparison."""
        return PEP440Version(self.to_pep440())

    def to_pep440(self) -> str:
        text = ".".join(str(part) for part in self.release)
        if self.is_prerelease:
            text += f"{self.stability.pep440_tag}{self.stability_number or 0}"
        if self.extra:
            text += f"+{self.extra}"
        return text

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key == other.sort_key

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __hash__(self) -> int:
        return hash(self.sort_key)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        text = f"{self.core}.x-" if self.core is not None else ""
        text += str(self.major)
        if self.minor is not None:
            text += f".{self.minor}"
        if self.patch is not None:
            text += f".{self.patch}"
        if self.is_prerelease:
            text += f"-{self.stability.name.lower()}"
            if self.stability_number is not None:
                text += str(self.stability_number)
        if self.extra:
            text += f"+{self.extra}"
        return text

    def __repr__(self) -> str:
        return f"Version({str(self)!r})"


def parse_version(value: Union[str, Version], *, project: Optional[str] = None) -> Version:
    """Parse a version string.

    Args:
        value: Version string such as ``"8.x-1.2-beta1"`` or ``"2.0.0"``.
            A :class:`Version` is returned unchanged.
        project: Project name recorded on the error, if parsing fails.

    Returns:
        The parsed :class:`Version`.

    Raises:
        ParseError: ``value`` is not a recognized version string.

    Examples:
        >>> parse_version("8.x-1.2-beta1").release
        (1, 2, 0)
        >>> parse_version("1.0") == parse_version("8.x-1.0.0")
        True
    """
    if isinstance(value, Version):
        return value

    if not isinstance(value, str):
        raise ParseError(
            f"Version must be a string, got {type(value).__name__}",
            value=repr(value),
            project=project,
        )

    text = value.strip()
    match = _VERSION_PATTERN.match(text)
    if not match:
        raise ParseError(f"Invalid version string: {value!r}", value=value, project=project)

    number = match.group("number")
    version = Version(
        major=int(match.group("major")),
        minor=_optional_int(match.group("minor")),
        patch=_optional_int(match.group("patch")),
        stability=Stability.from_tag(match.group("stability")),
        stability_number=int(number) if number else None,
        extra=match.group("extra"),
        core=_optional_int(match.group("core")),
    )

    try:
        version.sort_key
    except InvalidVersion as exc:
        raise ParseError(
            f"Invalid version string: {value!r}", value=value, project=project
        ) from exc

    return version


def _optional_int(text: Optional[str]) -> Optional[int]:
    return int(text) if text is not None else None


# ---------------------------------------------------------------------------
# Branches
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Branch:
    """A release branch identifier such as ``8.x-1.`` or ``9.1.``.

    A branch is a numeric prefix: ``(1,)`` covers every ``1.*`` release and
    ``(9, 1)`` covers every ``9.1.*`` release.
    """

    parts: Tuple[int, ...]
    core: Optional[int] = None

    def contains(self, version: Version) -> bool:
        """Return ``True`` if ``version`` belongs to this branch."""
        if self.core is not None and version.core is not None:
            if self.core != version.core:
                return False
        return version.release[: len(self.parts)] == self.parts

    def __str__(self) -> str:
        prefix = f"{self.core}.x-" if self.core is not None else ""
        return prefix + ".".join(str(part) for part in self.parts) + "."


def parse_branch(value: str) -> Branch:
    """Parse a single branch identifier.

    Raises:
        ParseError: ``value`` is not a recognized branch identifier.
    """
    match = _BRANCH_PATTERN.match(value.strip())
    if not match:
        raise ParseError(f"Invalid branch identifier: {value!r}", value=value)

    parts: Tuple[int, ...] = (int(match.group("major")),)
    if match.group("minor") is not None:
        parts += (int(match.group("minor")),)

    return Branch(parts=parts, core=_optional_int(match.group("core")))


def parse_supported_branches(value: Optional[str]) -> Optional[FrozenSet[Branch]]:
    """Parse a comma-separated supported-branches declaration.

    Returns ``None`` when no declaration is present, meaning every branch
    is considered supported.

    Example:
        >>> sorted(str(b) for b in parse_supported_branches("8.x-1.,8.x-2."))
        ['8.x-1.', '8.x-2.']
    """
    if value is None:
        return None
    return frozenset(
        parse_branch(item) for item in value.split(",") if item.strip()
    )


def is_supported(
    version: Version,
    supported_branches: Optional[FrozenSet[Branch]],
) -> bool:
    """Return ``True`` if ``version`` lies in a supported branch."""
    if supported_branches is None:
        return True
    return any(branch.contains(version) for branch in supported_branches)
