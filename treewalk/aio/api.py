"""High-level async API for treewalk.

This module provides simple, user-friendly async functions for common
walking tasks. Globs are resolved against the walked root, so
``'**/*.py'`` means "every .py file under root".
"""

import stat as stat_module
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .._common.stat import WalkPathStat
from ..config import WalkPathLogOptions, WalkPathOptions
from ..glob.load import Glob, load_globs
from ..glob.match_path import MatchPath, create_match_path
from .walk import WalkPathHandlePathArg, walk_paths


GlobLike = Union[str, Glob]


async def build_match_path(
    root: Union[str, Path],
    globs: Optional[Sequence[GlobLike]],
    case_insensitive: bool = False,
    pool=None,
) -> Optional[MatchPath]:
    """Compile globs relative to ``root``.

    Plain strings are taken as patterns; Glob entries may also point to
    .gitignore-like files (relative to ``root``).

    Returns:
        MatchPath, or None when no globs are given (everything included)
    """
    if not globs:
        return None
    entries = [Glob(value=g) if isinstance(g, str) else g for g in globs]
    raw_globs = await load_globs(entries, root_dir=str(root), pool=pool)
    return create_match_path(raw_globs, root_dir=str(root), case_insensitive=case_insensitive)


async def walk_tree_async(
    root: Union[str, Path],
    globs: Optional[Sequence[GlobLike]] = None,
    walk_links: bool = False,
    case_insensitive: bool = False,
    **options: Any,
) -> WalkPathStat:
    """Walk a directory tree filtered by globs.

    Args:
        root: Root directory to walk
        globs: Patterns or Glob entries, relative to root
        walk_links: Follow symbolic links
        case_insensitive: Fold case while matching globs
        **options: Other WalkPathOptions fields (handle_path, handle_error,
            log, pool, priority, cancellation_token)

    Returns:
        Aggregated statistics of root

    Example:
        >>> stat = await walk_tree_async('project', ['**/*.py', '^**/.venv'])
        >>> print(stat.count_files, stat.total_size)
    """
    match_path = await build_match_path(root, globs, case_insensitive, options.get('pool'))
    return await walk_paths(WalkPathOptions(
        paths=[str(root)],
        walk_links=walk_links,
        match_path=match_path,
        **options,
    ))


async def calculate_size_async(
    root: Union[str, Path],
    globs: Optional[Sequence[GlobLike]] = None,
    walk_links: bool = False,
    max_nested_level: Optional[int] = None,
    min_total_content_size: Optional[int] = None,
    handle_log=None,
) -> Dict[str, Any]:
    """Calculate total size of a directory tree.

    Sizes are reported through the walk log when ``handle_log`` or one of
    the thresholds is given.

    Args:
        root: Root directory
        globs: Patterns or Glob entries, relative to root
        walk_links: Follow symbolic links
        max_nested_level: Don't log paths deeper than this level
        min_total_content_size: Don't log items smaller than this
        handle_log: Receives one formatted line per logged item

    Returns:
        Dictionary with size statistics
    """
    log = None
    if handle_log is not None or max_nested_level is not None or min_total_content_size is not None:
        log = WalkPathLogOptions(
            max_nested_level=max_nested_level,
            min_total_content_size=min_total_content_size,
            handle_log=handle_log,
        )
    stat = await walk_tree_async(root, globs, walk_links=walk_links, log=log)
    result = stat.to_dict()
    result['root'] = str(root)
    return result


async def find_files_async(
    root: Union[str, Path],
    globs: Sequence[GlobLike],
    walk_links: bool = False,
    case_insensitive: bool = False,
) -> List[Path]:
    """Find files matching globs.

    Args:
        root: Root directory to search
        globs: Patterns or Glob entries, relative to root
        walk_links: Follow symbolic links
        case_insensitive: Fold case while matching globs

    Returns:
        Sorted list of matching file paths
    """
    found: List[Path] = []

    def collect(arg: WalkPathHandlePathArg) -> bool:
        if stat_module.S_ISREG(arg.stat.st_mode):
            found.append(Path(arg.path))
        return True

    await walk_tree_async(
        root, globs,
        walk_links=walk_links,
        case_insensitive=case_insensitive,
        handle_path=collect,
    )
    return sorted(found)


async def get_tree_stats_async(
    roots: Union[str, Path, Sequence[Union[str, Path]]],
    globs: Optional[Sequence[GlobLike]] = None,
    walk_links: bool = False,
) -> Dict[str, Dict[str, Any]]:
    """Get statistics for each of several trees in one walk.

    Files reachable from more than one root are counted once, under the
    root that reached them first.

    Args:
        roots: Root directories (or a single one)
        globs: Patterns or Glob entries, relative to the current directory
        walk_links: Follow symbolic links

    Returns:
        Dictionary mapping each counted root path to its statistics
    """
    if isinstance(roots, (str, Path)):
        roots = [roots]

    stats: Dict[str, Dict[str, Any]] = {}

    def collect(arg: WalkPathHandlePathArg) -> bool:
        if arg.level == 0:
            stats[arg.path] = arg.item_stat.to_dict()
        return True

    match_path = await build_match_path('.', globs)
    await walk_paths(
        paths=[str(root) for root in roots],
        walk_links=walk_links,
        match_path=match_path,
        handle_path=collect,
    )
    return stats
