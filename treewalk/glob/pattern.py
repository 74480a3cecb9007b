"""Pattern compiler: turns one glob string into a path predicate.

Globs are translated segment by segment into a regular expression that is
matched against the whole normalized path:

    *        any run of characters inside one segment
    ?        one character inside a segment
    [abc]    character class, ``[^abc]`` negates it (``!`` is literal)
    (a|b)    group inside one segment
    {a,b}    alternatives, expanded before translation
    **       any number of whole segments, only as a segment of its own

A glob never matches below the paths it names: ``*.js`` matches
``lib.js`` but not ``lib.js/readme.md``. A trailing ``/**`` also matches
the directory itself, so ``node_modules/**`` matches ``node_modules``
unless the segment before it ends with ``*``.
"""

import re
from typing import List, Optional, Pattern, Tuple

from pathspec.util import normalize_file

from ..errors import InvalidPatternError


GLOBSTAR = '**'

_BRACKET_ERROR = "Ensure all brackets [ ] are properly closed and balanced."


def normalize_path(path: str) -> str:
    """Normalize a path for matching.

    Backslashes become forward slashes on every platform, and one leading
    slash or ``./`` is dropped, so absolute paths and root-anchored globs
    line up.
    """
    return normalize_file(path, separators=('\\',))


def expand_braces(glob: str) -> List[str]:
    """Expand ``{a,b}`` alternatives into separate globs.

    Groups may nest. A group without a comma, an unclosed brace or an
    escaped brace is kept literally.

    Args:
        glob: Glob possibly containing brace groups

    Returns:
        Expanded globs in order, without duplicates
    """
    group = _find_brace_group(glob)
    if group is None:
        return [glob]

    open_index, close_index, alternatives = group
    prefix = glob[:open_index]
    suffix = glob[close_index + 1:]

    expanded: List[str] = []
    for alternative in alternatives:
        for item in expand_braces(prefix + alternative + suffix):
            if item not in expanded:
                expanded.append(item)
    return expanded


def _find_brace_group(glob: str) -> Optional[Tuple[int, int, List[str]]]:
    """Locate the first brace group with at least two alternatives."""
    i, end = 0, len(glob)
    while i < end:
        char = glob[i]
        if char == '\\':
            i += 2
            continue

        if char == '{':
            depth = 0
            parts = []
            part_start = i + 1
            j = i
            while j < end:
                current = glob[j]
                if current == '\\':
                    j += 2
                    continue
                if current == '{':
                    depth += 1
                elif current == '}':
                    depth -= 1
                    if depth == 0:
                        parts.append(glob[part_start:j])
                        if len(parts) > 1:
                            return i, j, parts
                        break
                elif current == ',' and depth == 1:
                    parts.append(glob[part_start:j])
                    part_start = j + 1
                j += 1

        i += 1

    return None


def _has_groups(segment: str) -> bool:
    """Whether the parentheses of a segment are balanced groups."""
    depth = 0
    for char in segment:
        if char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
            if depth < 0:
                return False
    return depth == 0 and '(' in segment


def _translate_bracket(segment: str, start: int, source: str) -> Tuple[int, str]:
    """Translate the bracket expression opening just before ``start``.

    Returns the index past the closing bracket and the regex class.
    """
    end = len(segment)
    j = start
    negate = j < end and segment[j] == '^'
    if negate:
        j += 1
    # A closing bracket right after the opening one is a member
    if j < end and segment[j] == ']':
        j += 1

    close = segment.find(']', j)
    if close == -1:
        raise InvalidPatternError(source, _BRACKET_ERROR)

    members = segment[start + 1 if negate else start:close]
    expr = ''.join(char if char == '-' else re.escape(char) for char in members)
    if negate:
        return close + 1, f"[^/{expr}]"
    return close + 1, f"[{expr}]"


def _translate_segment(segment: str, source: str) -> str:
    """Translate one path segment (no ``/``) into a regex string."""
    if segment and not segment.strip('*'):
        # A segment of stars names an entry, so it is never empty
        return '[^/]+'

    groups = _has_groups(segment)
    depth = 0
    regex = ''
    i, end = 0, len(segment)
    while i < end:
        char = segment[i]
        i += 1

        if char == '*':
            while i < end and segment[i] == '*':
                i += 1
            regex += '[^/]*'
        elif char == '?':
            regex += '[^/]'
        elif char == '[':
            i, expr = _translate_bracket(segment, i, source)
            regex += expr
        elif groups and char == '(':
            depth += 1
            regex += '(?:'
        elif groups and char == ')':
            depth -= 1
            regex += ')'
        elif groups and char == '|' and depth > 0:
            regex += '|'
        else:
            regex += re.escape(char)

    return regex


def _translate(glob: str, source: str) -> str:
    """Translate one brace-free glob into a regex over the whole path."""
    segments: List[str] = []
    for segment in normalize_path(glob).split('/'):
        if segment == GLOBSTAR and segments and segments[-1] == GLOBSTAR:
            continue
        segments.append(segment)

    if segments == [GLOBSTAR]:
        return '.+'

    regex = ''
    last = len(segments) - 1
    for index, segment in enumerate(segments):
        if segment == GLOBSTAR:
            if index == 0:
                regex += '(?:[^/]+/)*'
            elif index == last:
                # dir/** matches dir too, */** needs something below
                regex += '/.*' if segments[index - 1].endswith('*') else '(?:/.*)?'
            else:
                regex += '/(?:[^/]+/)*'
            continue

        if index > 0 and segments[index - 1] != GLOBSTAR:
            regex += '/'
        regex += _translate_segment(segment, source)

    return regex


class GlobMatcher:
    """Compiled glob predicate over normalized paths."""

    __slots__ = ('glob', 'literal', 'regexes')

    def __init__(self, glob: str, regexes: List[Pattern]):
        self.glob = glob
        self.literal = normalize_path(glob)
        self.regexes = tuple(regexes)

    def __call__(self, path: str) -> bool:
        # A path spelled exactly like the glob always matches
        if path == self.literal:
            return True
        for regex in self.regexes:
            if regex.fullmatch(path) is not None:
                return True
        return False

    def __repr__(self) -> str:
        return f"GlobMatcher({self.glob!r})"


def compile_glob(glob: str, case_insensitive: bool = False) -> GlobMatcher:
    """Compile a glob into a predicate.

    The glob is always matched from the path root: ``*.py`` matches
    ``setup.py`` but not ``src/setup.py``. Wildcards match hidden entries.

    Args:
        glob: Bare glob (no ``!``/``^`` prefixes)
        case_insensitive: Fold case while matching

    Returns:
        GlobMatcher accepting normalized paths (see normalize_path)

    Raises:
        InvalidPatternError: If the glob cannot be compiled
    """
    flags = re.IGNORECASE if case_insensitive else 0
    regexes = []
    for alternative in expand_braces(glob):
        regex = _translate(alternative, glob)
        try:
            regexes.append(re.compile(regex, flags))
        except re.error as e:
            raise InvalidPatternError(glob, str(e)) from e
    return GlobMatcher(glob, regexes)
