"""Priority-aware admission pool for bounded concurrent I/O.

Works like an asyncio.Semaphore with weighted permits, except that
waiters are admitted in priority order (FIFO among equal priorities)
instead of arrival order alone. Every filesystem call and every user
handler of a walk goes through a pool.
"""

import asyncio
import heapq
import itertools
from typing import Any, Callable, List, Optional

from .._common.priority import Priority
from ..config import DEFAULT_FS_CONCURRENCY
from .cancellation import CancellationToken


_ROOT_PRIORITY = Priority()


class PriorityPool:
    """Counting pool with prioritized admission.

    Attributes:
        max_count: Total number of permits
    """

    def __init__(self, max_count: int):
        """Initialize pool.

        Args:
            max_count: Total number of permits (must be positive)
        """
        if max_count < 1:
            raise ValueError("max_count must be positive")
        self.max_count = max_count
        self._hold_count = 0
        # Heap of [priority, sequence, count, future]
        self._waiters: List[list] = []
        self._sequence = itertools.count()

    @property
    def hold_count(self) -> int:
        """Permits currently held."""
        return self._hold_count

    @property
    def free_count(self) -> int:
        """Permits currently available."""
        return self.max_count - self._hold_count

    @property
    def pending_count(self) -> int:
        """Waiters not yet admitted."""
        return sum(1 for entry in self._waiters if not entry[3].done())

    async def acquire(
        self,
        count: int = 1,
        priority: Optional[Priority] = None,
        token: Optional[CancellationToken] = None,
    ) -> None:
        """Wait until ``count`` permits are granted.

        Args:
            count: Number of permits
            priority: Admission priority (lower first)
            token: Cancels the wait with OperationCancelledError

        Raises:
            ValueError: If count exceeds max_count
            OperationCancelledError: If token is cancelled before admission
        """
        if count > self.max_count:
            raise ValueError(f"count {count} exceeds pool size {self.max_count}")
        if token is not None:
            token.raise_if_cancelled()

        if not self._has_pending() and self._hold_count + count <= self.max_count:
            self._hold_count += count
            return

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        heapq.heappush(self._waiters, [
            priority if priority is not None else _ROOT_PRIORITY,
            next(self._sequence),
            count,
            future,
        ])

        unsubscribe = None
        if token is not None:
            def on_cancel(reason):
                if not future.done():
                    future.set_exception(token.error())
                    self._wake()
            unsubscribe = token.subscribe(on_cancel)

        try:
            await future
        except BaseException:
            if future.done() and not future.cancelled() and future.exception() is None:
                # Admitted right before the waiting task was cancelled
                self.release(count)
            else:
                if not future.done():
                    future.cancel()
                self._wake()
            raise
        finally:
            if unsubscribe is not None:
                unsubscribe()

    def release(self, count: int = 1) -> None:
        """Return ``count`` permits and admit waiters."""
        self._hold_count -= count
        if self._hold_count < 0:
            raise RuntimeError("PriorityPool released more permits than held")
        self._wake()

    def _has_pending(self) -> bool:
        while self._waiters and self._waiters[0][3].done():
            heapq.heappop(self._waiters)
        return bool(self._waiters)

    def _wake(self) -> None:
        while self._has_pending():
            _, _, count, future = self._waiters[0]
            if self._hold_count + count > self.max_count:
                break
            heapq.heappop(self._waiters)
            self._hold_count += count
            future.set_result(None)

    async def run(
        self,
        func: Callable[[], Any],
        count: int = 1,
        priority: Optional[Priority] = None,
        token: Optional[CancellationToken] = None,
    ) -> Any:
        """Run ``func`` while holding ``count`` permits.

        ``func`` may be a plain function or return a coroutine.
        """
        await self.acquire(count, priority, token)
        try:
            if token is not None:
                token.raise_if_cancelled()
            result = func()
            if asyncio.iscoroutine(result):
                result = await result
            return result
        finally:
            self.release(count)

    def __repr__(self) -> str:
        return f"PriorityPool(hold={self._hold_count}/{self.max_count}, pending={self.pending_count})"


async def pool_run_wait(
    pool: PriorityPool,
    func: Callable[[], Any],
    count: int = 1,
    priority: Optional[Priority] = None,
    token: Optional[CancellationToken] = None,
) -> Any:
    """Submit ``func`` to ``pool`` and wait for its result."""
    return await pool.run(func, count=count, priority=priority, token=token)


# Shared pool for filesystem operations
pool_fs = PriorityPool(DEFAULT_FS_CONCURRENCY)
