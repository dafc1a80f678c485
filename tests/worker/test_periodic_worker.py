# tests/worker/test_periodic_worker.py
"""
Тесты базового периодического воркера.
"""

from __future__ import annotations

import asyncio

import pytest

from livetrack.worker.base import PeriodicWorker


class CountingWorker(PeriodicWorker):
    """Воркер-счётчик; первые fail_times итераций падают."""

    def __init__(self, interval_seconds: float = 0.01, fail_times: int = 0) -> None:
        super().__init__(interval_seconds)
        self.calls = 0
        self.fail_times = fail_times

    @property
    def name(self) -> str:
        return "counting"

    async def run_once(self) -> int:
        self.calls += 1
        if self.calls <= self.fail_times:
            raise RuntimeError("сбой итерации")
        return 1


class TestPeriodicWorker:
    """Тесты PeriodicWorker."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self) -> None:
        worker = CountingWorker()

        await worker.start()
        assert worker.is_running is True
        await asyncio.sleep(0.05)
        await worker.stop()

        assert worker.is_running is False
        assert worker.calls >= 1

    @pytest.mark.asyncio
    async def test_no_iterations_after_stop(self) -> None:
        worker = CountingWorker()
        await worker.start()
        await asyncio.sleep(0.03)
        await worker.stop()

        calls = worker.calls
        await asyncio.sleep(0.03)
        assert worker.calls == calls

    @pytest.mark.asyncio
    async def test_error_does_not_stop_loop(self) -> None:
        worker = CountingWorker(fail_times=1)

        await worker.start()
        await asyncio.sleep(0.06)
        await worker.stop()

        assert worker.calls >= 2

    @pytest.mark.asyncio
    async def test_double_start_and_stop(self) -> None:
        worker = CountingWorker(interval_seconds=10)

        await worker.start()
        task = worker._task
        await worker.start()
        assert worker._task is task

        await worker.stop()
        await worker.stop()
        assert worker.is_running is False
