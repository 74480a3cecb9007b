"""Exception types raised by treewalk.

Filesystem failures are not wrapped: they surface as the builtin OSError
family so that error handlers can inspect ``errno`` directly.
"""

from typing import Any, Optional


class TreeWalkError(Exception):
    """Base class for all treewalk errors."""


class InvalidPatternError(TreeWalkError, ValueError):
    """A glob pattern could not be compiled.

    Raised at compile time only, never while matching paths.
    """

    def __init__(self, glob: str, message: str):
        self.glob = glob
        self.detail = message
        super().__init__(
            f'Invalid glob pattern: "{glob}". {message} '
            'Valid glob patterns use: * (match any characters), '
            '** (match any directories), ? (match single character), '
            '[abc] (character class with balanced brackets), '
            '{a,b} (alternatives), ! (negate pattern), '
            '^ (exclude if included). '
            'Examples: "*.py", "src/**/*.py", "!node_modules", "^dist".'
        )


class OperationCancelledError(TreeWalkError):
    """An operation was cancelled through a CancellationToken.

    Not an OSError: filesystem error policies never see it and it cannot
    be swallowed as a missing path.
    """

    def __init__(self, reason: Optional[Any] = None):
        self.reason = reason
        super().__init__(
            "Operation cancelled" if reason is None else f"Operation cancelled: {reason}"
        )
