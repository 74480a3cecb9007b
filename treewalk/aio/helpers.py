"""Path identity helpers for the walker."""

import os
import re


_DRIVE_RE = re.compile(r'^[/\\]?[^/\\]+')


def get_drive(path: str) -> str:
    """Get the volume part of an absolute path.

    This is the drive letter on Windows (``C:``) and the first path
    component elsewhere (``/home``).
    """
    match = _DRIVE_RE.match(path)
    if match is None:
        return path
    return match.group(0)


def get_file_id(path: str, stat: os.stat_result) -> str:
    """Identity key of a filesystem object.

    Two paths with the same key refer to the same physical file
    (hard links, or a link back into an already visited tree). The device
    number is used when the platform reports one, the volume otherwise.
    """
    volume = stat.st_dev or get_drive(path)
    return f"{volume}|{stat.st_ino}"


def path_resolve(path: str) -> str:
    """Resolve ``path`` to an absolute, normalized path.

    A bare drive (``D:``) means the drive root, not the drive's current
    directory.
    """
    if path.endswith(':'):
        path += os.sep
    return os.path.abspath(path)
