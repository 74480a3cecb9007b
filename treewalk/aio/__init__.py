"""Asynchronous walker of treewalk.

This package contains the concurrent walker and the primitives it is
built on: the priority admission pool, cancellation tokens and error
policies. Filesystem calls run in worker threads, so walking never blocks
the event loop.
"""

# Primitives
from .cancellation import CancellationSource, CancellationToken, combine_tokens
from .pool import PriorityPool, pool_fs, pool_run_wait
from .helpers import get_drive, get_file_id, path_resolve

# Error policies
from .error_policies import (
    ErrorPolicy,
    FailFastPolicy,
    ContinueOnErrorsPolicy,
    CollectErrorsPolicy,
    ThresholdPolicy,
    walk_path_handle_error_default,
)

# Walker
from .walk import WalkPathHandlePathArg, walk_paths

# High-level API
from .api import (
    build_match_path,
    walk_tree_async,
    calculate_size_async,
    find_files_async,
    get_tree_stats_async,
)

__all__ = [
    # Primitives
    'CancellationSource',
    'CancellationToken',
    'combine_tokens',
    'PriorityPool',
    'pool_fs',
    'pool_run_wait',
    'get_drive',
    'get_file_id',
    'path_resolve',
    # Error policies
    'ErrorPolicy',
    'FailFastPolicy',
    'ContinueOnErrorsPolicy',
    'CollectErrorsPolicy',
    'ThresholdPolicy',
    'walk_path_handle_error_default',
    # Walker
    'WalkPathHandlePathArg',
    'walk_paths',
    # High-level API
    'build_match_path',
    'walk_tree_async',
    'calculate_size_async',
    'find_files_async',
    'get_tree_stats_async',
]
