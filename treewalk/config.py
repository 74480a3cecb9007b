"""Configuration system for treewalk.

This module defines how callers describe a walk: which paths to visit,
how to filter them, how much concurrent I/O to allow and what to do with
every qualifying path.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Union

from ._common.priority import Priority


DEFAULT_FS_CONCURRENCY = 32  # Default size of the shared filesystem pool


class GlobValueType(Enum):
    """What a Glob value holds."""
    PATTERN = "pattern"                                  # A glob pattern
    FILE_CONTAINS_PATTERNS = "file-contains-patterns"   # Path to a .gitignore-like file


LogFunc = Callable[[str], Union[None, Awaitable[None]]]
HandleError = Callable[[BaseException], Union[Optional[bool], Awaitable[Optional[bool]]]]
HandlePath = Callable[[Any], Union[bool, Awaitable[bool]]]


@dataclass
class WalkPathLogOptions:
    """Configuration for size reporting during a walk."""

    max_nested_level: Optional[int] = None       # Don't log paths deeper than this level
    min_total_content_size: Optional[int] = None  # Don't log items smaller than this
    handle_log: Optional[LogFunc] = None          # Defaults to print

    def can_log(self, level: int, item_size: int) -> bool:
        """Check if an item passes both logging thresholds.

        Args:
            level: Nesting level of the item (0 for top-level paths)
            item_size: Total size of the item in bytes

        Returns:
            True if the item should be logged
        """
        if self.min_total_content_size is not None and item_size < self.min_total_content_size:
            return False
        if self.max_nested_level is not None and level > self.max_nested_level:
            return False
        return True


@dataclass
class WalkPathOptions:
    """Complete configuration for one walk_paths call.

    Options are read-only for the duration of the walk. Nested directory
    levels receive value copies with an incremented level.
    """

    paths: List[str]
    walk_links: bool = False
    cancellation_token: Optional[Any] = None  # CancellationToken
    pool: Optional[Any] = None                # PriorityPool, defaults to pool_fs
    priority: Optional[Priority] = None
    log: Optional[WalkPathLogOptions] = None
    handle_path: Optional[HandlePath] = None
    handle_error: Optional[HandleError] = None
    match_path: Optional[Callable[[str], Any]] = None  # MatchPath

    def validate(self) -> List[str]:
        """Validate configuration for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if isinstance(self.paths, (str, bytes)):
            errors.append("paths must be a list of paths, not a single string")

        if self.log is not None:
            if self.log.max_nested_level is not None and self.log.max_nested_level < 0:
                errors.append("max_nested_level cannot be negative")
            if self.log.min_total_content_size is not None and self.log.min_total_content_size < 0:
                errors.append("min_total_content_size cannot be negative")

        if self.handle_path is not None and not callable(self.handle_path):
            errors.append("handle_path must be callable")

        if self.handle_error is not None and not callable(self.handle_error):
            errors.append("handle_error must be callable")

        if self.match_path is not None and not callable(self.match_path):
            errors.append("match_path must be callable")

        return errors
