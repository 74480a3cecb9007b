"""Concurrent filesystem walker.

walk_paths visits a set of paths recursively, filters them through a
MatchPath, deduplicates physical files, aggregates per-subtree statistics
and hands every qualifying path to a caller callback. Every filesystem
call and every callback runs through a PriorityPool, so the total amount
of concurrent I/O stays bounded however wide or deep the tree is.

Example:
    >>> match = create_match_path(['**/*.py'], root_dir='src')
    >>> stat = await walk_paths(paths=['src'], match_path=match)
    >>> stat.count_files
    42
"""

import asyncio
import os
import stat as stat_module
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, List, Optional, Set

from .._common.priority import Priority, Tier, priority_create
from .._common.stat import WalkPathStat, add_stats, format_size
from ..config import WalkPathOptions
from ..errors import OperationCancelledError
from ..glob.match_path import MatchResult
from .cancellation import CancellationSource, CancellationToken
from .error_policies import walk_path_handle_error_default
from .helpers import get_file_id, path_resolve
from .pool import PriorityPool, pool_fs


@dataclass
class WalkPathHandlePathArg:
    """Argument of a handle_path callback.

    Attributes:
        level: Nesting level (0 for the paths passed to walk_paths)
        path: Path as reached by the walk (links are not resolved)
        stat: lstat result of the path
        item_stat: Statistics of the item, including its counted subtree
        total_stat: Running total of the item's level
        cancellation_token: Cancelled when the walk is aborted
    """
    level: int
    path: str
    stat: os.stat_result
    item_stat: WalkPathStat
    total_stat: WalkPathStat
    cancellation_token: CancellationToken


async def _maybe_await(result: Any) -> Any:
    if asyncio.iscoroutine(result) or isinstance(result, asyncio.Future):
        return await result
    return result


def _to_match_result(value: Any) -> MatchResult:
    """Accept a MatchResult or a plain True/False/None filter result."""
    if isinstance(value, MatchResult):
        return value
    if value is False:
        return MatchResult.EXCLUDED
    if value:
        return MatchResult.INCLUDED
    return MatchResult.UNMATCHED


async def _gather_level(source: CancellationSource, coros: List[Awaitable]) -> list:
    """Run sibling operations, aborting all of them on the first failure.

    On failure the level's token is cancelled, the remaining tasks are
    cancelled and drained, and the original error is re-raised.
    """
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException as e:
        source.cancel(e)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def walk_paths(options: Optional[WalkPathOptions] = None, **kwargs) -> WalkPathStat:
    """Walk paths recursively and aggregate their statistics.

    Accepts either a WalkPathOptions instance or its fields as keyword
    arguments (keywords override fields of a given instance).

    Args:
        options: Walk configuration

    Returns:
        Aggregated statistics of every included top-level path

    Raises:
        ValueError: If the configuration is invalid
        OperationCancelledError: If the walk was cancelled
        OSError: On the first filesystem error not handled by handle_error
            or the default policy (which only swallows missing paths)
    """
    if options is None:
        options = WalkPathOptions(**kwargs)
    elif kwargs:
        options = replace(options, **kwargs)

    errors = options.validate()
    if errors:
        raise ValueError(f"Invalid configuration: {', '.join(errors)}")

    if options.cancellation_token is not None:
        options.cancellation_token.raise_if_cancelled()

    return await _walk_level(options, level=0, walked_ids=set())


async def _walk_level(
    options: WalkPathOptions,
    level: int,
    walked_ids: Set[str],
) -> WalkPathStat:
    """Walk one directory level; nested levels recurse through here."""
    total_stat = WalkPathStat()
    if not options.paths:
        return total_stat

    pool: PriorityPool = options.pool if options.pool is not None else pool_fs
    priority: Priority = options.priority if options.priority is not None else priority_create(0)
    log_options = options.log
    handle_path = options.handle_path
    handle_error = options.handle_error
    match_path = options.match_path

    with CancellationSource(options.cancellation_token) as source:
        token = source.token

        async def _handle_error(error: BaseException) -> None:
            if handle_error is not None:
                if await _maybe_await(handle_error(error)):
                    return
            if walk_path_handle_error_default(error):
                return
            raise error

        async def _fs_call(func: Callable, path: str) -> Any:
            """Run a blocking filesystem call; None if its error was handled."""
            try:
                return await asyncio.to_thread(func, path)
            except Exception as e:
                await _handle_error(e)
                return None

        async def _log_item(item_path: str, item_stat: WalkPathStat) -> None:
            if log_options is None or not log_options.can_log(level, item_stat.total_size):
                return
            message = f"{format_size(item_stat.total_size)}: {item_path}"
            if log_options.handle_log is not None:
                await _maybe_await(log_options.handle_log(message))
            else:
                print(message)

        async def _handle_path(
            item_path: str,
            item_lstat: os.stat_result,
            item_stat: WalkPathStat,
            item_priority: Priority,
        ) -> bool:
            if handle_path is None:
                return True

            arg = WalkPathHandlePathArg(
                level=level,
                path=item_path,
                stat=item_lstat,
                item_stat=item_stat,
                total_stat=total_stat,
                cancellation_token=token,
            )

            async def call() -> bool:
                try:
                    return bool(await _maybe_await(handle_path(arg)))
                except OperationCancelledError:
                    raise
                except Exception as e:
                    await _handle_error(e)
                    return False

            return await pool.run(call, priority=item_priority, token=token)

        async def process_item(
            resolved_path: str,
            index: int,
            match_result: MatchResult,
            original_path: Optional[str] = None,
            report: bool = True,
        ) -> Optional[WalkPathStat]:
            """Visit one item.

            ``resolved_path`` is where the item physically is (a link target
            when following links); ``original_path`` is the path reported to
            callers. Link targets are visited with ``report=False`` so they
            are only reported once, as part of the link.

            Returns:
                Statistics of the item, or None if it was skipped
            """
            if original_path is None:
                original_path = resolved_path

            item_lstat = await pool.run(
                lambda: _fs_call(os.lstat, resolved_path),
                priority=priority_create(index, priority_create(Tier.METADATA, priority)),
                token=token,
            )
            if item_lstat is None:
                return None

            mode = item_lstat.st_mode
            is_dir = stat_module.S_ISDIR(mode)
            is_file = stat_module.S_ISREG(mode)
            is_link = stat_module.S_ISLNK(mode)

            if match_result is not MatchResult.INCLUDED and is_file:
                return None

            item_id = get_file_id(resolved_path, item_lstat)
            if item_id in walked_ids:
                return None
            walked_ids.add(item_id)

            # A directory adds only its content, even when its listing fails
            item_stat = WalkPathStat(
                total_size=0 if is_dir else item_lstat.st_size,
                max_file_date_modified=0.0 if is_dir else item_lstat.st_mtime,
            )
            item_priority = priority_create(
                index,
                priority_create(Tier.DIRECTORY if is_dir else Tier.FILE, priority),
            )

            if is_link:
                if options.walk_links:
                    link = await pool.run(
                        lambda: _fs_call(os.readlink, resolved_path),
                        priority=item_priority,
                        token=token,
                    )
                    if link:
                        if not os.path.isabs(link):
                            link = os.path.join(os.path.dirname(resolved_path), link)
                        linked_stat = await process_item(
                            path_resolve(link),
                            index,
                            match_result,
                            original_path,
                            report=False,
                        )
                        if linked_stat is not None:
                            item_stat = linked_stat
            elif is_dir:
                names = await pool.run(
                    lambda: _fs_call(os.listdir, resolved_path),
                    priority=priority,
                    token=token,
                )
                if names is not None:
                    item_stat = await _walk_level(
                        replace(
                            options,
                            paths=[os.path.join(original_path, name) for name in names],
                            cancellation_token=token,
                            priority=item_priority,
                        ),
                        level + 1,
                        walked_ids,
                    )

            if match_result is MatchResult.INCLUDED or item_stat.count_items >= 1:
                if is_link:
                    item_stat.count_links += 1
                elif is_dir:
                    item_stat.count_dirs += 1
                elif is_file:
                    item_stat.count_files += 1

                if report:
                    should_include = await _handle_path(
                        original_path, item_lstat, item_stat, item_priority,
                    )
                    if should_include:
                        add_stats(total_stat, item_stat)
                        await _log_item(original_path, item_stat)

            return item_stat

        coros = []
        for index, item in enumerate(options.paths):
            item_path = path_resolve(item)
            match_result = MatchResult.INCLUDED
            if match_path is not None:
                match_result = _to_match_result(match_path(item_path))
            if match_result is MatchResult.EXCLUDED:
                continue
            coros.append(process_item(item_path, index, match_result))

        await _gather_level(source, coros)

    return total_stat
