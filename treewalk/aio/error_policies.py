"""
Error handling policies for treewalk.

A walk offers every failed filesystem operation and every exception raised
by a path handler to its ``handle_error`` callback. Any policy instance in
this module can be passed as that callback. Returning True swallows the
error (the operation yields no result); returning False falls back to the
default policy, which swallows only missing-path errors (ENOENT).
"""

import errno
import sys
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


def walk_path_handle_error_default(error: BaseException) -> bool:
    """Default policy: a path that vanished mid-walk is not an error.

    Returns:
        True for ENOENT errors, False for everything else
    """
    if isinstance(error, FileNotFoundError):
        return True
    return isinstance(error, OSError) and error.errno == errno.ENOENT


def _error_path(error: BaseException) -> Optional[str]:
    """Extract the path an error refers to, if any."""
    filename = getattr(error, 'filename', None)
    return str(filename) if filename is not None else None


def _error_record(error: BaseException) -> Dict[str, Any]:
    return {
        'path': _error_path(error),
        'error': error,
        'error_type': type(error).__name__,
        'error_message': str(error),
    }


class ErrorPolicy(ABC):
    """
    Base class for error handling policies.

    Subclasses implement different strategies for errors that occur
    during a walk. Instances are callable and can be passed directly as
    ``handle_error``.
    """

    @abstractmethod
    def handle(self, error: BaseException) -> bool:
        """
        Handle an error raised during a walk.

        Args:
            error: The exception that was raised

        Returns:
            True if the error is handled and the walk should continue,
            False to apply the default policy. May raise to abort.
        """
        pass

    def __call__(self, error: BaseException) -> bool:
        return self.handle(error)


class FailFastPolicy(ErrorPolicy):
    """
    Policy that immediately re-raises any error, stopping the walk.

    Even missing paths abort the walk. Useful when data integrity is
    critical and partial results are not acceptable.
    """

    def handle(self, error: BaseException) -> bool:
        """Re-raise the error immediately."""
        raise error


class ContinueOnErrorsPolicy(ErrorPolicy):
    """
    Policy that records errors and continues the walk.

    Errors are collected for later inspection. Useful when you want to
    process as much as possible despite some failures.
    """

    def __init__(self, verbose: bool = True):
        """
        Initialize the policy.

        Args:
            verbose: If True, print warnings to stderr when errors occur
        """
        self.errors: List[Dict[str, Any]] = []
        self.skipped_paths: List[str] = []
        self.verbose = verbose

    def handle(self, error: BaseException) -> bool:
        """Record the error, optionally warn, and continue."""
        record = _error_record(error)
        self.errors.append(record)

        path = record['path']
        if isinstance(error, OSError) and path:
            self.skipped_paths.append(path)

        if self.verbose:
            if isinstance(error, PermissionError):
                print(f"\nWARNING: Skipping inaccessible path '{path}': {error}", file=sys.stderr)
            else:
                print(f"\nWARNING: Error for '{path}': {error}", file=sys.stderr)

        return True

    def get_statistics(self) -> dict:
        """
        Get statistics about errors encountered.

        Returns:
            Dictionary with error counts and details
        """
        return {
            'total_errors': len(self.errors),
            'permission_errors': sum(1 for e in self.errors if e['error_type'] == 'PermissionError'),
            'os_errors': sum(1 for e in self.errors if isinstance(e['error'], OSError)),
            'skipped_paths': len(self.skipped_paths),
            'errors': self.errors,
        }


class CollectErrorsPolicy(ContinueOnErrorsPolicy):
    """
    Policy that collects all errors without printing, for batch processing.

    Useful for collecting all errors and presenting them at the end.
    """

    def __init__(self):
        super().__init__(verbose=False)


class ThresholdPolicy(ErrorPolicy):
    """
    Policy that tolerates errors up to a threshold, then fails fast.

    Useful when some errors are expected but too many indicate
    a systemic problem that should halt the walk.
    """

    def __init__(self, max_errors: int = 10, verbose: bool = True):
        """
        Initialize threshold policy.

        Args:
            max_errors: Maximum errors to tolerate before failing
            verbose: If True, print warnings for errors
        """
        self.max_errors = max_errors
        self.error_count = 0
        self.verbose = verbose
        self.errors: List[BaseException] = []

    def handle(self, error: BaseException) -> bool:
        """Handle error if under threshold, otherwise raise."""
        self.error_count += 1
        self.errors.append(error)

        if self.error_count > self.max_errors:
            raise RuntimeError(f"Error threshold exceeded ({self.max_errors} errors)") from error

        if self.verbose:
            print(f"\nWARNING [{self.error_count}/{self.max_errors}]: Error for "
                  f"'{_error_path(error)}': {error}", file=sys.stderr)

        return True
