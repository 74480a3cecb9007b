"""Path-filter engine: .gitignore-like path matching.

A list of raw globs is compiled into an ordered tuple of conditions. Each
glob may carry up to two prefixes:

    glob     include the path (clears any exclusion)
    !glob    do not include the path (clears any exclusion)
    ^glob    exclude the path, even if it was included
    ^!glob   remove an exclusion set by an earlier ^glob

``^`` must come before ``!`` and each may appear at most once, so
``!^glob``, ``^^glob`` and ``!!glob`` are invalid.

Conditions are evaluated in order and later matches override earlier ones.
The result is three-valued: included, excluded, or unmatched (no
decision, the caller applies its default).
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Tuple

from ..errors import InvalidPatternError
from .pattern import compile_glob, normalize_path


class MatchResult(Enum):
    """Outcome of matching one path."""
    INCLUDED = True
    EXCLUDED = False
    UNMATCHED = None

    @classmethod
    def from_bool(cls, value: Optional[bool]) -> 'MatchResult':
        """Convert ``True``/``False``/``None`` to a MatchResult."""
        return cls(value)

    def as_bool(self) -> Optional[bool]:
        """Convert to ``True``/``False``/``None``."""
        return self.value


@dataclass(frozen=True)
class Condition:
    """One compiled glob."""

    # Exclude conditions override inclusion. A walk never enters an excluded
    # directory, so its children stay excluded even if a later glob includes them.
    exclude: bool
    negative: bool
    glob: str
    match: Callable[[str], bool]


class MatchPath:
    """Compiled matcher returned by create_match_path.

    Stateless across calls: all state lives in the condition tuple.
    """

    __slots__ = ('conditions',)

    def __init__(self, conditions: Iterable[Condition]):
        self.conditions: Tuple[Condition, ...] = tuple(conditions)

    def __call__(self, path: str) -> MatchResult:
        path = normalize_path(path)
        include = MatchResult.UNMATCHED
        exclude = False
        for condition in self.conditions:
            if condition.match(path):
                if condition.exclude:
                    exclude = not condition.negative
                else:
                    include = MatchResult.EXCLUDED if condition.negative else MatchResult.INCLUDED
                    exclude = False
        if exclude:
            return MatchResult.EXCLUDED
        return include

    def __repr__(self) -> str:
        return f"MatchPath({[c.glob for c in self.conditions]!r})"


def _parse_prefixes(glob: str) -> Tuple[str, bool, bool]:
    """Split ``^`` and ``!`` prefixes off a glob."""
    exclude = glob.startswith('^')
    if exclude:
        glob = glob[1:].strip()
    negative = glob.startswith('!')
    if negative:
        glob = glob[1:].strip()
    if glob.startswith('!') or glob.startswith('^'):
        raise InvalidPatternError(
            glob,
            f"The syntax '{glob[:2]}' is not supported. "
            "Avoid starting with '!' after '^' or repeating special prefixes.",
        )
    return glob, exclude, negative


def _resolve_glob(glob: str, root_dir: Optional[str]) -> str:
    """Make a glob absolute against ``root_dir`` when one is given."""
    if root_dir:
        if glob.startswith('/'):
            glob = '.' + glob
        resolved = os.path.normpath(os.path.join(os.path.abspath(root_dir), glob))
        return resolved.replace('\\', '/')
    if glob.startswith('./'):
        glob = glob[2:]
    return glob


def create_match_path(
    globs: Iterable[str],
    root_dir: Optional[str] = None,
    case_insensitive: bool = False,
) -> MatchPath:
    """Compile globs into a MatchPath.

    Args:
        globs: Raw globs with optional ``^``/``!`` prefixes, in priority order
        root_dir: Resolve globs against this directory (absolute matching)
        case_insensitive: Fold case while matching

    Returns:
        MatchPath mapping a path to a MatchResult

    Raises:
        InvalidPatternError: On invalid prefixes or glob syntax

    Example:
        >>> match = create_match_path(['**/*', '^node_modules/**'])
        >>> match('node_modules')
        <MatchResult.EXCLUDED: False>
    """
    conditions = []
    for raw_glob in globs:
        glob = raw_glob.replace('\\', '/').strip()
        glob, exclude, negative = _parse_prefixes(glob)
        if not glob:
            continue

        glob = _resolve_glob(glob, root_dir)
        if not glob.strip('/'):
            continue

        try:
            matcher = compile_glob(glob, case_insensitive=case_insensitive)
        except InvalidPatternError as e:
            raise InvalidPatternError(raw_glob, e.detail) from e

        conditions.append(Condition(
            exclude=exclude,
            negative=negative,
            glob=glob,
            match=matcher,
        ))

    return MatchPath(conditions)
