"""Assemble a glob list from inline patterns and .gitignore-like files."""

import asyncio
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..config import GlobValueType
from .relative import glob_gitignore_to_glob, glob_to_relative


@dataclass
class Glob:
    """One entry of a glob list.

    Attributes:
        value: A glob pattern, or a path to a file listing patterns
        value_type: What ``value`` holds
        exclude: Prefix the resulting globs with ``^`` (exclude like .gitignore)
    """
    value: str
    value_type: GlobValueType = GlobValueType.PATTERN
    exclude: bool = False


def _glob_exclude(glob: str) -> str:
    return '^' + glob


def _read_lines(file_path: str) -> List[str]:
    with open(file_path, 'r', encoding='utf-8') as f:
        return f.read().split('\n')


async def load_globs_from_file(file_path: str) -> List[str]:
    """Read patterns from a file, one per line.

    Lines are trimmed. Blank lines and lines starting with ``#`` are
    skipped.
    """
    lines = await asyncio.to_thread(_read_lines, file_path)
    globs = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        globs.append(line)
    return globs


async def load_globs(
    globs: Optional[Sequence[Glob]],
    root_dir: Optional[str] = None,
    pool=None,
) -> List[str]:
    """Turn a list of Glob entries into raw globs for create_match_path.

    Inline patterns are emitted first, in input order. Then the patterns of
    every listed file follow, in input order: each keeps its .gitignore
    meaning (unanchored lines match at any depth below the file's
    directory, ``/``-prefixed lines only directly in it) and is rebased
    onto the file's directory relative to ``root_dir``. A trailing slash is
    dropped, so ``build/`` names the ``build`` directory itself.

    Args:
        globs: Entries to load; entries with an empty value are skipped
        root_dir: Directory the resulting globs are relative to (default: cwd)
        pool: PriorityPool used for file reads (default: the shared pool)

    Returns:
        Raw globs, ``^``-prefixed where the entry is an exclude

    Raises:
        OSError: If a pattern file cannot be read
    """
    if not globs:
        return []

    from ..aio.pool import pool_fs
    if pool is None:
        pool = pool_fs
    root_dir = root_dir or '.'

    result: List[str] = []
    files: List[Glob] = []
    for glob in globs:
        if not glob.value:
            continue
        if glob.value_type == GlobValueType.FILE_CONTAINS_PATTERNS:
            files.append(glob)
        elif glob.value_type == GlobValueType.PATTERN:
            result.append(_glob_exclude(glob.value) if glob.exclude else glob.value)

    async def load_file(glob: Glob) -> List[str]:
        file_path = os.path.abspath(os.path.join(root_dir, glob.value))
        file_globs = await pool.run(lambda: load_globs_from_file(file_path))
        relative_path = os.path.relpath(os.path.dirname(file_path), os.path.abspath(root_dir))
        loaded = []
        for value in file_globs:
            # Walked paths carry no trailing slash, "dir/" must match "dir"
            value = value.rstrip('/') or value
            if relative_path == '.':
                value = glob_gitignore_to_glob(value)
            else:
                # Rebasing keeps a leading slash anchored to the file's directory
                value = glob_to_relative(value, relative_path)
            loaded.append(_glob_exclude(value) if glob.exclude else value)
        return loaded

    if files:
        for loaded in await asyncio.gather(*(load_file(glob) for glob in files)):
            result.extend(loaded)

    return result
