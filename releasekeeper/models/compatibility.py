"""
Core compatibility ranges for releasekeeper.

A :class:`CoreCompatibility` lists the host-core versions a release works
with, collapsed into contiguous runs for display::

    8.0.0 to 8.1.1
    8.0.0, 8.1.1
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from releasekeeper.models.version import Version


@dataclass(frozen=True)
class CoreCompatibility:
    """Inclusive runs of compatible core versions.

    Attributes:
        ranges: ``(first, last)`` pairs in ascending order. ``first`` and
            ``last`` are equal for a single isolated version.
    """

    ranges: Tuple[Tuple[Version, Version], ...]

    @property
    def min(self) -> Version:
        return self.ranges[0][0]

    @property
    def max(self) -> Version:
        return self.ranges[-1][1]

    def __str__(self) -> str:
        parts: List[str] = []
        for first, last in self.ranges:
            if first == last:
                parts.append(str(first))
            else:
                parts.append(f"{first} to {last}")
        return ", ".join(parts)

    def to_json(self) -> Dict[str, Any]:
        return {
            "min": str(self.min),
            "max": str(self.max),
            "ranges": [[str(first), str(last)] for first, last in self.ranges],
            "message": str(self),
        }
