"""Tests for plume._internal.pool: bounded fail-fast task pool."""

import anyio
import pytest

from plume._internal.pool import TaskPool


class TestTaskPool:
    async def test_runs_all_tasks(self) -> None:
        done: list[int] = []

        def make(i: int):
            async def task() -> None:
                done.append(i)

            return task

        count = await TaskPool(3).run([make(i) for i in range(7)])

        assert count == 7
        assert sorted(done) == list(range(7))

    async def test_concurrency_never_exceeds_limit(self) -> None:
        active = 0
        peak = 0

        async def task() -> None:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await anyio.sleep(0.01)
            active -= 1

        await TaskPool(3).run([task for _ in range(12)])

        assert peak == 3

    async def test_first_error_reraised_unwrapped(self) -> None:
        class Boom(Exception):
            pass

        async def bad() -> None:
            raise Boom("first")

        async def slow() -> None:
            await anyio.sleep(5)

        with anyio.fail_after(2), pytest.raises(Boom, match="first"):
            await TaskPool(2).run([bad, slow, slow])

    async def test_error_stops_waiting_tasks(self) -> None:
        started: list[int] = []

        async def bad() -> None:
            started.append(0)
            raise ValueError("stop")

        def make(i: int):
            async def task() -> None:
                started.append(i)
                await anyio.sleep(0.01)

            return task

        with pytest.raises(ValueError):
            await TaskPool(1).run([bad, *(make(i) for i in range(1, 5))])

        assert started == [0]

    async def test_empty_batch(self) -> None:
        assert await TaskPool(4).run([]) == 0

    def test_invalid_limit(self) -> None:
        with pytest.raises(ValueError, match=">= 1"):
            TaskPool(0)
