"""
Tests for the concurrent filesystem walker.
"""

import asyncio
import errno
import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from treewalk import (
    CancellationSource,
    OperationCancelledError,
    PriorityPool,
    WalkPathLogOptions,
    WalkPathOptions,
    create_match_path,
    format_size,
    walk_paths,
)
from treewalk.aio import CollectErrorsPolicy, ContinueOnErrorsPolicy


needs_symlinks = pytest.mark.skipif(
    sys.platform == 'win32', reason="Symbolic links need privileges on Windows"
)


def _write(path: Path, size: int, mtime: float = None) -> None:
    path.write_bytes(b'x' * size)
    if mtime is not None:
        os.utime(path, (mtime, mtime))


@pytest.fixture
def sample_tree():
    """Create a small file tree.

    Structure:
        root
        ├── a.txt         10 bytes
        ├── b.py          20 bytes
        └── sub
            ├── c.py      30 bytes
            └── deep
                └── d.txt 40 bytes
    """
    with tempfile.TemporaryDirectory(prefix='walk_test_') as tmpdir:
        root = Path(tmpdir) / 'root'
        (root / 'sub' / 'deep').mkdir(parents=True)
        _write(root / 'a.txt', 10, 1000.0)
        _write(root / 'b.py', 20, 2000.0)
        _write(root / 'sub' / 'c.py', 30, 3000.0)
        _write(root / 'sub' / 'deep' / 'd.txt', 40, 4000.0)
        yield root


class TestWalkStatistics:
    """Aggregation of sizes, counts and modification times."""

    @pytest.mark.asyncio
    async def test_walk_everything(self, sample_tree):
        stat = await walk_paths(paths=[str(sample_tree)])
        assert stat.total_size == 100
        assert stat.count_files == 4
        assert stat.count_dirs == 3
        assert stat.count_links == 0
        assert stat.max_file_date_modified == 4000.0

    @pytest.mark.asyncio
    async def test_options_object(self, sample_tree):
        stat = await walk_paths(WalkPathOptions(paths=[str(sample_tree)]))
        assert stat.total_size == 100

    @pytest.mark.asyncio
    async def test_empty_paths(self):
        stat = await walk_paths(paths=[])
        assert stat.count_items == 0
        assert stat.total_size == 0

    @pytest.mark.asyncio
    async def test_missing_path_is_ignored(self, sample_tree):
        stat = await walk_paths(paths=[str(sample_tree / 'missing'), str(sample_tree / 'a.txt')])
        assert stat.total_size == 10
        assert stat.count_files == 1

    @pytest.mark.asyncio
    async def test_single_file(self, sample_tree):
        stat = await walk_paths(paths=[str(sample_tree / 'sub' / 'c.py')])
        assert stat.total_size == 30
        assert stat.count_files == 1
        assert stat.count_dirs == 0
        assert stat.max_file_date_modified == 3000.0

    @pytest.mark.asyncio
    async def test_overlapping_paths_counted_once(self, sample_tree):
        stat = await walk_paths(paths=[str(sample_tree), str(sample_tree / 'sub')])
        assert stat.total_size == 100
        assert stat.count_files == 4
        assert stat.count_dirs == 3

    @pytest.mark.asyncio
    async def test_hard_links_counted_once(self, sample_tree):
        try:
            os.link(sample_tree / 'a.txt', sample_tree / 'a_hard.txt')
        except (OSError, NotImplementedError):
            pytest.skip("Hard links not supported")
        stat = await walk_paths(paths=[str(sample_tree)])
        assert stat.total_size == 100
        assert stat.count_files == 4

    @pytest.mark.asyncio
    async def test_invalid_options(self, sample_tree):
        with pytest.raises(ValueError, match="Invalid configuration"):
            await walk_paths(paths=str(sample_tree))


class TestWalkFiltering:
    """Interaction with the path-filter engine."""

    @pytest.mark.asyncio
    async def test_included_files_and_their_ancestors(self, sample_tree):
        """Directories are counted only when something below them is."""
        match = create_match_path(['**/*.py'], root_dir=str(sample_tree))
        seen = []

        def handle_path(arg):
            seen.append(os.path.relpath(arg.path, sample_tree))
            return True

        stat = await walk_paths(
            paths=[str(sample_tree)], match_path=match, handle_path=handle_path,
        )
        assert stat.total_size == 50
        assert stat.count_files == 2
        assert stat.count_dirs == 2
        assert sorted(seen) == sorted(['.', 'b.py', 'sub', os.path.join('sub', 'c.py')])

    @pytest.mark.asyncio
    @pytest.mark.parametrize('exclude', ['^sub', '^sub/**'])
    async def test_excluded_subtree_is_not_visited(self, sample_tree, exclude):
        match = create_match_path(['**/*', exclude], root_dir=str(sample_tree))
        seen = []

        def handle_path(arg):
            seen.append(arg.path)
            return True

        with patch('os.listdir', wraps=os.listdir) as listdir:
            stat = await walk_paths(
                paths=[str(sample_tree)], match_path=match, handle_path=handle_path,
            )
        listed = [call.args[0] for call in listdir.call_args_list]

        assert stat.total_size == 30
        assert stat.count_files == 2
        assert stat.count_dirs == 1
        assert not any('sub' in Path(p).parts for p in seen)
        assert listed == [str(sample_tree)]

    @pytest.mark.asyncio
    async def test_excluded_directory_glob_is_never_listed(self, tmp_path):
        """``^dir/**`` excludes the directory itself, so the walk skips it."""
        root = tmp_path / 'project'
        (root / 'node_modules' / 'pkg').mkdir(parents=True)
        _write(root / 'a.js', 5)
        _write(root / 'node_modules' / 'pkg' / 'i.js', 7)
        match = create_match_path(['**/*', '^node_modules/**'], root_dir=str(root))
        seen = []

        def handle_path(arg):
            seen.append(os.path.relpath(arg.path, root))
            return True

        with patch('os.listdir', wraps=os.listdir) as listdir:
            stat = await walk_paths(
                paths=[str(root)], match_path=match, handle_path=handle_path,
            )
        listed = [call.args[0] for call in listdir.call_args_list]

        assert sorted(seen) == ['.', 'a.js']
        assert listed == [str(root)]
        assert stat.count_files == 1
        assert stat.count_dirs == 1
        assert stat.total_size == 5

    @pytest.mark.asyncio
    async def test_star_does_not_reach_into_directories(self, tmp_path):
        root = tmp_path / 'project'
        (root / 'src').mkdir(parents=True)
        _write(root / 'b.txt', 3)
        _write(root / 'src' / 'a.js', 4)
        match = create_match_path(['*'], root_dir=str(root))

        stat = await walk_paths(paths=[str(root)], match_path=match)
        assert stat.count_files == 1
        assert stat.total_size == 3

    @pytest.mark.asyncio
    async def test_excluded_top_level_path(self, sample_tree):
        match = create_match_path(['^**/*.txt'], root_dir=str(sample_tree))
        stat = await walk_paths(paths=[str(sample_tree / 'a.txt')], match_path=match)
        assert stat.count_items == 0

    @pytest.mark.asyncio
    async def test_plain_callable_filter(self, sample_tree):
        stat = await walk_paths(
            paths=[str(sample_tree)],
            match_path=lambda path: False if path.endswith('.txt') else True,
        )
        assert stat.total_size == 50
        assert stat.count_files == 2


class TestWalkHandlers:
    """handle_path callbacks."""

    @pytest.mark.asyncio
    async def test_handler_arguments(self, sample_tree):
        levels = {}
        tokens = set()

        def handle_path(arg):
            levels[os.path.relpath(arg.path, sample_tree)] = arg.level
            tokens.add(arg.cancellation_token is not None)
            return True

        await walk_paths(paths=[str(sample_tree)], handle_path=handle_path)
        assert levels['.'] == 0
        assert levels['sub'] == 1
        assert levels['a.txt'] == 1
        assert levels[os.path.join('sub', 'deep', 'd.txt')] == 3
        assert tokens == {True}

    @pytest.mark.asyncio
    async def test_directory_item_stat(self, sample_tree):
        stats = {}

        def handle_path(arg):
            stats[os.path.relpath(arg.path, sample_tree)] = arg.item_stat.copy()
            return True

        await walk_paths(paths=[str(sample_tree)], handle_path=handle_path)
        sub = stats['sub']
        assert sub.total_size == 70
        assert sub.count_files == 2
        assert sub.count_dirs == 2
        assert sub.max_file_date_modified == 4000.0

    @pytest.mark.asyncio
    async def test_handler_false_drops_item(self, sample_tree):
        def handle_path(arg):
            return not arg.path.endswith('b.py')

        stat = await walk_paths(paths=[str(sample_tree)], handle_path=handle_path)
        assert stat.total_size == 80
        assert stat.count_files == 3

    @pytest.mark.asyncio
    async def test_handler_false_on_directory_drops_subtree(self, sample_tree):
        def handle_path(arg):
            return os.path.basename(arg.path) != 'sub'

        stat = await walk_paths(paths=[str(sample_tree)], handle_path=handle_path)
        assert stat.total_size == 30
        assert stat.count_files == 2
        assert stat.count_dirs == 1

    @pytest.mark.asyncio
    async def test_async_handler(self, sample_tree):
        async def handle_path(arg):
            await asyncio.sleep(0)
            return not arg.path.endswith('d.txt')

        stat = await walk_paths(paths=[str(sample_tree)], handle_path=handle_path)
        assert stat.total_size == 60

    @pytest.mark.asyncio
    async def test_handler_error_routed_to_error_handler(self, sample_tree):
        policy = CollectErrorsPolicy()

        def handle_path(arg):
            if arg.path.endswith('a.txt'):
                raise ValueError("cannot process")
            return True

        stat = await walk_paths(
            paths=[str(sample_tree)], handle_path=handle_path, handle_error=policy,
        )
        assert stat.total_size == 90
        assert stat.count_files == 3
        assert len(policy.errors) == 1
        assert policy.errors[0]['error_type'] == 'ValueError'

    @pytest.mark.asyncio
    async def test_unhandled_handler_error_rejects_walk(self, sample_tree):
        def handle_path(arg):
            raise ValueError("cannot process")

        with pytest.raises(ValueError, match="cannot process"):
            await walk_paths(paths=[str(sample_tree)], handle_path=handle_path)

    @pytest.mark.asyncio
    async def test_handlers_respect_pool_size(self, sample_tree):
        pool = PriorityPool(2)
        running = 0
        peak = 0

        async def handle_path(arg):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.005)
            running -= 1
            return True

        for i in range(10):
            _write(sample_tree / f'extra{i}.bin', 1)

        stat = await walk_paths(paths=[str(sample_tree)], pool=pool, handle_path=handle_path)
        assert stat.count_files == 14
        assert 1 <= peak <= 2
        assert pool.hold_count == 0


class TestWalkErrors:
    """Filesystem error policy."""

    @staticmethod
    def _deny_listing(denied: str):
        real_listdir = os.listdir

        def listdir(path):
            if os.fspath(path) == denied:
                raise PermissionError(errno.EACCES, "Permission denied", denied)
            return real_listdir(path)

        return patch('os.listdir', side_effect=listdir)

    @pytest.mark.asyncio
    async def test_unhandled_error_rejects_walk(self, sample_tree):
        with self._deny_listing(str(sample_tree / 'sub')):
            with pytest.raises(PermissionError):
                await walk_paths(paths=[str(sample_tree)])

    @pytest.mark.asyncio
    async def test_handled_error_skips_directory(self, sample_tree):
        denied = str(sample_tree / 'sub')
        policy = ContinueOnErrorsPolicy(verbose=False)
        with self._deny_listing(denied):
            stat = await walk_paths(paths=[str(sample_tree)], handle_error=policy)

        assert stat.total_size == 30
        assert stat.count_files == 2
        assert stat.count_dirs == 2
        assert policy.skipped_paths == [denied]

    @pytest.mark.asyncio
    async def test_async_error_handler(self, sample_tree):
        handled = []

        async def handle_error(error):
            handled.append(error)
            return True

        with self._deny_listing(str(sample_tree / 'sub')):
            await walk_paths(paths=[str(sample_tree)], handle_error=handle_error)
        assert len(handled) == 1

    @pytest.mark.asyncio
    async def test_falsy_error_handler_falls_back_to_default(self, sample_tree):
        seen = []

        def handle_error(error):
            seen.append(type(error))
            return None

        stat = await walk_paths(
            paths=[str(sample_tree / 'missing')], handle_error=handle_error,
        )
        assert seen == [FileNotFoundError]
        assert stat.count_items == 0


class TestWalkCancellation:
    """Cooperative cancellation."""

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, sample_tree):
        source = CancellationSource()
        source.cancel("not needed")
        with pytest.raises(OperationCancelledError):
            await walk_paths(paths=[str(sample_tree)], cancellation_token=source.token)

    @pytest.mark.asyncio
    async def test_cancel_mid_walk_rejects(self, sample_tree):
        source = CancellationSource()
        errors = []

        def handle_path(arg):
            source.cancel("enough")
            return True

        def handle_error(error):
            errors.append(error)
            return True

        with pytest.raises(OperationCancelledError, match="enough"):
            await walk_paths(
                paths=[str(sample_tree)],
                cancellation_token=source.token,
                handle_path=handle_path,
                handle_error=handle_error,
            )
        assert errors == []

    @pytest.mark.asyncio
    async def test_handler_sees_cancellation(self, sample_tree):
        source = CancellationSource()
        observed = []

        async def handle_path(arg):
            source.cancel()
            observed.append(arg.cancellation_token.cancelled)
            arg.cancellation_token.raise_if_cancelled()
            return True

        with pytest.raises(OperationCancelledError):
            await walk_paths(
                paths=[str(sample_tree)],
                cancellation_token=source.token,
                handle_path=handle_path,
            )
        assert observed and all(observed)

    @pytest.mark.asyncio
    async def test_pool_released_after_failure(self, sample_tree):
        pool = PriorityPool(3)

        def handle_path(arg):
            raise OSError(errno.EIO, "I/O error")

        with pytest.raises(OSError):
            await walk_paths(paths=[str(sample_tree)], pool=pool, handle_path=handle_path)
        assert pool.hold_count == 0
        assert pool.pending_count == 0


@needs_symlinks
class TestWalkLinks:
    """Symbolic links and cycles."""

    @pytest.mark.asyncio
    async def test_links_not_followed_by_default(self, sample_tree):
        link = sample_tree / 'link_to_sub'
        os.symlink(sample_tree / 'sub', link)
        stat = await walk_paths(paths=[str(sample_tree)])
        assert stat.count_links == 1
        assert stat.count_files == 4
        assert stat.total_size == 100 + os.lstat(link).st_size

    @pytest.mark.asyncio
    async def test_cycle_is_walked_once(self, sample_tree):
        link = sample_tree / 'sub' / 'loop'
        os.symlink('..', link)
        stat = await walk_paths(paths=[str(sample_tree)], walk_links=True)
        assert stat.count_files == 4
        assert stat.count_dirs == 3
        assert stat.count_links == 1
        assert stat.total_size == 100 + os.lstat(link).st_size

    @pytest.mark.asyncio
    async def test_link_to_outside_file(self, sample_tree):
        outside = sample_tree.parent / 'outside.txt'
        _write(outside, 7, 9000.0)
        link = sample_tree / 'outside_link'
        os.symlink(os.path.join('..', 'outside.txt'), link)
        seen = []

        def handle_path(arg):
            seen.append(arg.path)
            return True

        stat = await walk_paths(
            paths=[str(sample_tree)], walk_links=True, handle_path=handle_path,
        )
        assert stat.total_size == 107
        assert stat.count_files == 5
        assert stat.count_links == 1
        assert stat.max_file_date_modified == 9000.0
        assert str(link) in seen
        assert str(outside) not in seen

    @pytest.mark.asyncio
    async def test_link_to_directory_is_walked_under_link_path(self, sample_tree):
        other = sample_tree.parent / 'other'
        other.mkdir()
        _write(other / 'e.txt', 5)
        os.symlink(other, sample_tree / 'other_link')
        seen = []

        def handle_path(arg):
            seen.append(arg.path)
            return True

        stat = await walk_paths(
            paths=[str(sample_tree)], walk_links=True, handle_path=handle_path,
        )
        assert stat.total_size == 105
        assert stat.count_links == 1
        assert str(sample_tree / 'other_link' / 'e.txt') in seen

    @pytest.mark.asyncio
    async def test_broken_link(self, sample_tree):
        link = sample_tree / 'dangling'
        os.symlink(sample_tree / 'nowhere', link)
        stat = await walk_paths(paths=[str(sample_tree)], walk_links=True)
        assert stat.count_links == 1
        assert stat.count_files == 4


class TestWalkLogging:
    """Size reporting."""

    @pytest.mark.asyncio
    async def test_log_thresholds(self, sample_tree):
        lines = []
        log = WalkPathLogOptions(
            max_nested_level=1,
            min_total_content_size=35,
            handle_log=lines.append,
        )
        await walk_paths(paths=[str(sample_tree)], log=log)
        assert sorted(lines) == sorted([
            f"{format_size(100)}: {sample_tree}",
            f"{format_size(70)}: {sample_tree / 'sub'}",
        ])

    @pytest.mark.asyncio
    async def test_default_log_prints(self, sample_tree, capsys):
        await walk_paths(
            paths=[str(sample_tree)],
            log=WalkPathLogOptions(max_nested_level=0),
        )
        out = capsys.readouterr().out
        assert out == f"{format_size(100)}: {sample_tree}\n"

    @pytest.mark.asyncio
    async def test_async_log_handler(self, sample_tree):
        lines = []

        async def handle_log(message):
            lines.append(message)

        await walk_paths(
            paths=[str(sample_tree / 'b.py')],
            log=WalkPathLogOptions(handle_log=handle_log),
        )
        assert lines == [f"{format_size(20)}: {sample_tree / 'b.py'}"]

    @pytest.mark.asyncio
    async def test_dropped_items_not_logged(self, sample_tree):
        lines = []
        await walk_paths(
            paths=[str(sample_tree)],
            handle_path=lambda arg: not arg.path.endswith('.txt'),
            log=WalkPathLogOptions(handle_log=lines.append),
        )
        assert not any(line.endswith('.txt') for line in lines)
