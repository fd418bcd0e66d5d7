"""Bounded, fail-fast task pool on top of anyio.

Runs a batch of zero-argument async callables with at most ``limit`` in
flight. Excess tasks wait on a capacity limiter. The batch completes when
every task has finished; the first task error cancels the rest and is
re-raised as-is (not wrapped in an ``ExceptionGroup``).

Usage::

    pool = TaskPool(10)
    await pool.run([lambda: fetch("en"), lambda: fetch("fr")])
"""

from collections.abc import Iterable

import anyio

from plume._internal.types import Task


class TaskPool:
    """Fixed-size pool of concurrent tasks on the current event loop.

    Enqueue order is start order for waiting tasks, but completion order is
    unconstrained. Not reentrant across batches: one ``run()`` at a time.
    """

    __slots__ = ("_limit",)

    def __init__(self, limit: int) -> None:
        if limit < 1:
            msg = f"TaskPool limit must be >= 1, got {limit}"
            raise ValueError(msg)
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit

    async def run(self, tasks: Iterable[Task]) -> int:
        """Run every task, returning how many were executed.

        Raises:
            Exception: The first error raised by any task. Already-finished
                tasks are not undone.
        """
        limiter = anyio.CapacityLimiter(self._limit)
        errors: list[Exception] = []
        count = 0

        async def _worker(task: Task) -> None:
            async with limiter:
                if errors:
                    return
                try:
                    await task()
                except Exception as exc:
                    if not errors:
                        errors.append(exc)
                    tg.cancel_scope.cancel()

        async with anyio.create_task_group() as tg:
            for task in tasks:
                count += 1
                tg.start_soon(_worker, task)

        if errors:
            raise errors[0]
        return count
