"""treewalk - Concurrent filesystem walker with gitignore-like filtering.

treewalk walks directory trees concurrently under a bounded, prioritized
I/O budget, filters paths with ordered include/exclude globs and
aggregates sizes, counts and modification times per subtree.

Quick start:
━━━━━━━━━━━━━━━━━━━━━━━━━━
    from treewalk import create_match_path, walk_paths

    match = create_match_path(['**/*.py', '^**/.venv'], root_dir='.')
    stat = await walk_paths(paths=['.'], match_path=match)
━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

__version__ = "0.1.0"

from . import glob
from . import aio

from .errors import TreeWalkError, InvalidPatternError, OperationCancelledError
from .config import GlobValueType, WalkPathLogOptions, WalkPathOptions
from ._common import Priority, Tier, priority_create, WalkPathStat, add_stats, format_size
from .glob import Glob, MatchPath, MatchResult, create_match_path, load_globs
from .aio import (
    CancellationSource,
    CancellationToken,
    PriorityPool,
    WalkPathHandlePathArg,
    walk_paths,
    walk_tree_async,
)

__all__ = [
    "__version__",
    "glob",
    "aio",
    # Errors
    "TreeWalkError",
    "InvalidPatternError",
    "OperationCancelledError",
    # Configuration
    "GlobValueType",
    "WalkPathLogOptions",
    "WalkPathOptions",
    # Priorities and statistics
    "Priority",
    "Tier",
    "priority_create",
    "WalkPathStat",
    "add_stats",
    "format_size",
    # Filtering
    "Glob",
    "MatchPath",
    "MatchResult",
    "create_match_path",
    "load_globs",
    # Walking
    "CancellationSource",
    "CancellationToken",
    "PriorityPool",
    "WalkPathHandlePathArg",
    "walk_paths",
    "walk_tree_async",
]
