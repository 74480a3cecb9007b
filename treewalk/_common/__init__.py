"""Common components with no I/O.

This internal package contains pure computation shared by the glob and
aio packages. It should NOT be imported directly by users.

Important: This package must NEVER import from glob or aio to avoid
circular dependencies.
"""

from .priority import Priority, Tier, priority_create
from .stat import WalkPathStat, add_stats, format_size

__all__ = [
    'Priority',
    'Tier',
    'priority_create',
    'WalkPathStat',
    'add_stats',
    'format_size',
]
