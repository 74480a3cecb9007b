"""Glob compilation and path filtering.

    from treewalk.glob import create_match_path

    match = create_match_path(['**/*.py', '^**/__pycache__'])
    match('src/app.py')   # MatchResult.INCLUDED
"""

from .pattern import GlobMatcher, compile_glob, expand_braces, normalize_path
from .match_path import Condition, MatchPath, MatchResult, create_match_path
from .relative import glob_gitignore_to_glob, glob_to_relative
from .load import Glob, load_globs, load_globs_from_file

__all__ = [
    # Pattern compiler
    'GlobMatcher',
    'compile_glob',
    'expand_braces',
    'normalize_path',
    # Path-filter engine
    'Condition',
    'MatchPath',
    'MatchResult',
    'create_match_path',
    # Glob utilities
    'glob_gitignore_to_glob',
    'glob_to_relative',
    'Glob',
    'load_globs',
    'load_globs_from_file',
]
