"""Hierarchical priorities for the admission pool.

A priority is the path of indices from the root priority down to an
operation. Comparison is lexicographic, so a parent priority sorts before
every priority nested under it, and siblings sort by their index.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple


class Tier(IntEnum):
    """Operation class used as one level of a walk priority.

    Directory listings run at the level priority itself, which is a
    prefix of (and therefore sorts before) all of these.
    """
    METADATA = 1   # lstat of an item
    DIRECTORY = 2  # Work nested under a directory item
    FILE = 3       # Work on a leaf item (file, link, other)


@dataclass(frozen=True, order=True)
class Priority:
    """Immutable, totally ordered priority key."""

    path: Tuple[int, ...] = ()

    @property
    def depth(self) -> int:
        """Number of nesting levels in this priority."""
        return len(self.path)

    @property
    def parent(self) -> Optional['Priority']:
        """Priority this one was created under, or None for the root."""
        if not self.path:
            return None
        return Priority(self.path[:-1])

    def __repr__(self) -> str:
        return f"Priority({'.'.join(str(v) for v in self.path)})"


def priority_create(value: int, parent: Optional[Priority] = None) -> Priority:
    """Create a priority nested under ``parent``.

    Args:
        value: Position among siblings (lower runs first)
        parent: Enclosing priority, or None for a root priority

    Returns:
        New Priority
    """
    if parent is None:
        return Priority((value,))
    return Priority(parent.path + (value,))
