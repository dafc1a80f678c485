# livetrack/worker/maintenance.py
"""
Фоновое обслуживание: очистка неактивных подписок и просроченных маршрутов.
"""

from __future__ import annotations

from livetrack.core.routing.cache import RouteCache
from livetrack.core.tracking.broadcast import LocationBroadcastEngine
from livetrack.worker.base import PeriodicWorker


class IdleSubscriptionSweeper(PeriodicWorker):
    """Удаляет подписки старше таймаута неактивности (по умолчанию раз в час)."""

    def __init__(self, engine: LocationBroadcastEngine, interval_seconds: float = 3600) -> None:
        super().__init__(interval_seconds)
        self._engine = engine

    @property
    def name(self) -> str:
        return "idle_subscription_sweeper"

    async def run_once(self) -> int:
        return await self._engine.sweep_idle_subscriptions()


class RouteCachePurger(PeriodicWorker):
    """Удаляет просроченные маршруты из кэша."""

    def __init__(self, cache: RouteCache, interval_seconds: float = 600) -> None:
        super().__init__(interval_seconds)
        self._cache = cache

    @property
    def name(self) -> str:
        return "route_cache_purger"

    async def run_once(self) -> int:
        return await self._cache.purge_expired()
