"""
Version comparison helpers used when presenting suggested updates.
"""

from __future__ import annotations

from typing import Optional, Union

from releasekeeper.exceptions import ParseError
from releasekeeper.models.version import Version, parse_version

#: Labels for the components of :attr:`Version.release`.
_COMPONENTS = ("major", "minor", "patch")


def get_update_type(
    current_version: Optional[Union[str, Version]],
    target_version: Optional[Union[str, Version]],
) -> str:
    """Classify the step from ``current_version`` to ``target_version``.

    Returns ``"new"`` when nothing is installed, ``"same"``, ``"downgrade"``,
    the name of the first differing component (``"major"``, ``"minor"`` or
    ``"patch"``), ``"update"`` when only the stability tag changes, and
    ``"unknown"`` when the target is missing or either side does not parse.
    The core prefix is ignored, so ``8.x-1.0`` and ``1.0`` are the same.

    Examples:
        >>> get_update_type("8.x-1.0", "8.x-2.0")
        'major'
        >>> get_update_type("1.2-beta1", "1.2")
        'update'
    """
    if target_version is None:
        return "unknown"
    if current_version is None:
        return "new"

    try:
        current = parse_version(current_version)
        target = parse_version(target_version)
    except ParseError:
        return "unknown"

    if target == current:
        return "same"
    if target < current:
        return "downgrade"

    for label, old, new in zip(_COMPONENTS, current.release, target.release):
        if old != new:
            return label
    return "update"
