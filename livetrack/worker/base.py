# livetrack/worker/base.py
"""
Базовый класс для периодических воркеров.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from livetrack.common.constants import TypeMsg
from livetrack.common.logger import log_error, log_info


class PeriodicWorker(ABC):
    """
    Воркер, выполняющий run_once() с заданным интервалом.

    Ошибка одной итерации логируется и не останавливает цикл.
    """

    def __init__(self, interval_seconds: float) -> None:
        """
        Args:
            interval_seconds: Пауза между итерациями
        """
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Имя воркера."""

    @property
    def is_running(self) -> bool:
        return self._running

    @abstractmethod
    async def run_once(self) -> int:
        """Одна итерация; возвращает количество обработанных элементов."""

    async def start(self) -> None:
        """Запускает воркер."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._loop(), name=f"worker:{self.name}")
        await log_info(
            f"Воркер {self.name} запущен (интервал {self.interval_seconds} с)",
            type_msg=TypeMsg.INFO,
        )

    async def stop(self) -> None:
        """Останавливает воркер."""
        if not self._running:
            return

        self._running = False
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

        await log_info(f"Воркер {self.name} остановлен", type_msg=TypeMsg.INFO)

    async def _loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.interval_seconds)
            try:
                processed = await self.run_once()
                if processed:
                    await log_info(
                        f"Воркер {self.name}: обработано {processed}",
                        type_msg=TypeMsg.DEBUG,
                    )
            except Exception as e:
                await log_error(f"Ошибка в воркере {self.name}: {e}", exc_info=True)
