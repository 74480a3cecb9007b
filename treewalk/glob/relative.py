"""Glob rewriting helpers for patterns loaded from ignore files."""

import posixpath


def _normalize_glob(glob: str) -> str:
    """Collapse ``.``/``..``/duplicate slashes, keeping a trailing slash."""
    glob = glob.replace('\\', '/')
    trailing_slash = glob.endswith('/')
    normalized = posixpath.normpath(glob)
    if trailing_slash and not normalized.endswith('/'):
        normalized += '/'
    return normalized


def glob_gitignore_to_glob(glob: str) -> str:
    """Convert a .gitignore line to a root-anchored glob.

    .gitignore patterns without a leading slash match at any depth, while
    the filter engine anchors every glob at the root.

        /dist     -> dist
        *.log     -> **/*.log
        !build    -> !**/build
        **/tmp    -> **/tmp
    """
    negative = glob.startswith('!')
    if negative:
        glob = glob[1:]

    if glob.startswith('/'):
        glob = glob[1:]
    elif not glob.startswith('**') and not glob.startswith('../'):
        glob = f"**/{glob}"

    if negative:
        glob = '!' + glob
    return glob


def glob_to_relative(glob: str, relative_path: str) -> str:
    """Rebase a glob onto a directory relative to the matching root.

    ``^`` and ``!`` prefixes are preserved.

        /glob       -> <relative_path>/glob
        ./dir/glob  -> <relative_path>/dir/glob
        ../glob     -> <relative_path>/../glob
        **/glob     -> <relative_path>/**/glob
        glob        -> <relative_path>/**/glob

    Args:
        glob: Glob, optionally prefixed with ``^`` and/or ``!``
        relative_path: Directory the glob applies to, relative to the root

    Returns:
        Glob relative to the root
    """
    if not relative_path or relative_path == '.':
        return glob

    relative_path = relative_path.replace('\\', '/')

    exclude = glob.startswith('^')
    if exclude:
        glob = glob[1:]
    negative = glob.startswith('!')
    if negative:
        glob = glob[1:]

    if glob.startswith('/'):
        glob = relative_path.rstrip('/') + glob
    else:
        if not relative_path.endswith('/'):
            relative_path += '/'
        if glob.startswith('./'):
            glob = relative_path + glob[2:]
        elif glob.startswith('../'):
            glob = relative_path + glob
        else:
            # A directory above the root cannot scope an unanchored glob
            if relative_path.startswith('..'):
                relative_path = ''
            if glob.startswith('**'):
                glob = relative_path + glob
            else:
                glob = relative_path + '**/' + glob

    glob = _normalize_glob(glob)

    if negative:
        glob = '!' + glob
    if exclude:
        glob = '^' + glob
    return glob
