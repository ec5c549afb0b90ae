"""Core compatibility constraints for releasekeeper.

Release-history feeds declare which host-core versions a release works with
using Composer-style constraints (``^8 || ^9``, ``~8.8``, ``>=8.0 <9``).
This module translates them into :class:`packaging.specifiers.SpecifierSet`
alternatives and evaluates them against the core versions in play.

Typical usage::

    constraint = parse_core_constraint("^8.8 || ^9")
    constraint.allows(parse_version("9.1.0"))        # True

    compat = core_compatibility_for("^8", core_versions)
    str(compat)                                      # "8.0.0 to 8.1.1"
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple

from packaging.specifiers import InvalidSpecifier, SpecifierSet

from releasekeeper.exceptions import ParseError
from releasekeeper.models.compatibility import CoreCompatibility
from releasekeeper.models.version import Version
from releasekeeper.utils.logger import get_logger

logger = get_logger("compatibility")

__all__ = ["CoreConstraint", "parse_core_constraint", "core_compatibility_for"]

_ALTERNATIVE_SPLIT = re.compile(r"\s*\|\|?\s*")
_OPERATOR_SPACE = re.compile(r"(<=|>=|==|!=|~=|<|>|=)\s+")
_CARET = re.compile(r"^\^(\d+)(?:\.(\d+))?(?:\.(\d+))?$")
_TILDE = re.compile(r"^~(\d+)(?:\.(\d+))?(?:\.(\d+))?$")
_BARE = re.compile(r"^\d+(?:\.\d+)*(?:\.\*)?$")


@dataclass(frozen=True)
class CoreConstraint:
    """A parsed core compatibility constraint.

    Attributes:
        raw: The constraint as written in the catalog.
        alternatives: ``||``-separated alternatives; a version is allowed
            when it satisfies any of them.
    """

    raw: str
    alternatives: Tuple[SpecifierSet, ...]

    def allows(self, version: Version) -> bool:
        key = version.sort_key
        return any(spec.contains(key, prereleases=True) for spec in self.alternatives)

    def __str__(self) -> str:
        return self.raw


@lru_cache(maxsize=256)
def parse_core_constraint(text: str) -> CoreConstraint:
    """Parse a Composer-style or PEP 440 core constraint.

    Raises:
        ParseError: The constraint cannot be translated.

    Examples:
        >>> [str(s) for s in parse_core_constraint("^8 || ^9").alternatives]
        ['<9,>=8.0.0', '<10,>=9.0.0']
    """
    if not text or not text.strip():
        raise ParseError("Empty core compatibility constraint", value=text)

    alternatives: List[SpecifierSet] = []
    for alternative in _ALTERNATIVE_SPLIT.split(text.strip()):
        if not alternative:
            continue
        alternative = _OPERATOR_SPACE.sub(r"\1", alternative)
        tokens = alternative.replace(",", " ").split()
        specifiers: List[str] = []
        for token in tokens:
            specifiers.extend(_translate_token(token, text))
        try:
            alternatives.append(SpecifierSet(",".join(specifiers)))
        except InvalidSpecifier as exc:
            raise ParseError(
                f"Invalid core compatibility constraint: {text!r}", value=text
            ) from exc

    if not alternatives:
        raise ParseError(f"Invalid core compatibility constraint: {text!r}", value=text)

    return CoreConstraint(raw=text.strip(), alternatives=tuple(alternatives))


def _translate_token(token: str, original: str) -> List[str]:
    """Translate one Composer constraint token into PEP 440 specifiers."""
    caret = _CARET.match(token)
    if caret:
        major, minor, patch = (int(g) if g else 0 for g in caret.groups())
        lower = f">={major}.{minor}.{patch}"
        # The upper bound bumps the leftmost non-zero component given
        if major > 0 or caret.group(2) is None:
            return [lower, f"<{major + 1}"]
        if minor > 0 or caret.group(3) is None:
            return [lower, f"<0.{minor + 1}"]
        return [lower, f"<0.0.{patch + 1}"]

    tilde = _TILDE.match(token)
    if tilde:
        major, minor, patch = tilde.groups()
        if patch is not None:
            return [f">={major}.{minor}.{patch}", f"<{major}.{int(minor) + 1}"]
        if minor is not None:
            return [f">={major}.{minor}", f"<{int(major) + 1}"]
        return [f">={major}", f"<{int(major) + 1}"]

    if _BARE.match(token):
        return [f"=={token}"]

    if token.startswith("=") and not token.startswith("=="):
        return [f"={token}"]

    if token[:1] in "<>=!~":
        return [token]

    raise ParseError(
        f"Invalid core compatibility constraint: {original!r}", value=original
    )


def core_compatibility_for(
    constraint: Optional[str],
    core_versions: Iterable[Version],
) -> Optional[CoreCompatibility]:
    """Compute the compatible core ranges for a release.

    Args:
        constraint: The release's core compatibility constraint.
        core_versions: Core versions in play, in any order.

    Returns:
        The contiguous runs of matching core versions, or ``None`` when the
        release declares no constraint or nothing matches.
    """
    if not constraint:
        return None

    parsed = parse_core_constraint(constraint)
    ordered = _unique_sorted(core_versions)

    ranges: List[Tuple[Version, Version]] = []
    run: List[Version] = []
    for version in ordered:
        if parsed.allows(version):
            run.append(version)
            continue
        if run:
            ranges.append((run[0], run[-1]))
            run = []
    if run:
        ranges.append((run[0], run[-1]))

    if not ranges:
        logger.debug("No core versions satisfy %r", constraint)
        return None

    return CoreCompatibility(ranges=tuple(ranges))


def _unique_sorted(versions: Iterable[Version]) -> Sequence[Version]:
    seen = {}
    for version in versions:
        seen.setdefault(version, version)
    return sorted(seen.values())
