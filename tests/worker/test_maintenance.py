# tests/worker/test_maintenance.py
"""
Тесты воркеров обслуживания.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from livetrack.core.routing.cache import InMemoryRouteCache
from livetrack.core.routing.models import RouteCacheKey, RouteOptions
from livetrack.worker.maintenance import IdleSubscriptionSweeper, RouteCachePurger


class TestIdleSubscriptionSweeper:
    """Тесты очистки неактивных подписок."""

    @pytest.mark.asyncio
    async def test_run_once_sweeps_engine(self, engine, clock, connection_factory) -> None:
        await engine.subscribe("trip-1", "rider-1", connection_factory())
        clock.advance(hours=3)

        sweeper = IdleSubscriptionSweeper(engine)

        assert sweeper.name == "idle_subscription_sweeper"
        assert sweeper.interval_seconds == 3600
        assert await sweeper.run_once() == 1
        assert engine.get_stats()["active_subscriptions"] == 0

    @pytest.mark.asyncio
    async def test_run_once_delegates(self) -> None:
        engine = MagicMock()
        engine.sweep_idle_subscriptions = AsyncMock(return_value=0)

        assert await IdleSubscriptionSweeper(engine, interval_seconds=5).run_once() == 0
        engine.sweep_idle_subscriptions.assert_awaited_once()


class TestRouteCachePurger:
    """Тесты очистки кэша маршрутов."""

    @pytest.mark.asyncio
    async def test_run_once_purges_expired(self, monotonic, route_factory, pickup, destination) -> None:
        cache = InMemoryRouteCache(ttl_seconds=10, clock=monotonic)
        await cache.put(RouteCacheKey.build(pickup, destination, RouteOptions()), route_factory())
        monotonic.advance(11)

        purger = RouteCachePurger(cache, interval_seconds=1)

        assert purger.name == "route_cache_purger"
        assert await purger.run_once() == 1
        assert len(cache) == 0
