# livetrack/core/routing/cache.py
"""
Кэш маршрутов с истечением срока действия.

Два бэкенда: словарь в памяти процесса и Redis.
Просроченная запись никогда не возвращается.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable

from livetrack.core.routing.models import Route, RouteCacheKey

if TYPE_CHECKING:
    from livetrack.config.loader import Settings
    from livetrack.infra.redis_client import RedisClient


DEFAULT_ROUTE_TTL = 24 * 60 * 60


class RouteCache(ABC):
    """Интерфейс кэша маршрутов."""

    @abstractmethod
    async def get(self, key: RouteCacheKey) -> Route | None:
        """Маршрут по ключу или None (нет записи / просрочена)."""

    @abstractmethod
    async def put(self, key: RouteCacheKey, route: Route) -> None:
        """Сохраняет маршрут на время жизни кэша."""

    @abstractmethod
    async def purge_expired(self) -> int:
        """Удаляет просроченные записи, возвращает их количество."""

    @abstractmethod
    async def clear(self) -> None:
        """Полностью очищает кэш."""


class InMemoryRouteCache(RouteCache):
    """Кэш в памяти процесса."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_ROUTE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        # key -> (route, expires_at)
        self._entries: dict[RouteCacheKey, tuple[Route, float]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: RouteCacheKey) -> Route | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        route, expires_at = entry
        if self._clock() >= expires_at:
            # Удаляем, только если запись не заменили
            if self._entries.get(key) is entry:
                del self._entries[key]
            return None
        return route

    async def put(self, key: RouteCacheKey, route: Route) -> None:
        self._entries[key] = (route, self._clock() + self._ttl)

    async def purge_expired(self) -> int:
        now = self._clock()
        removed = 0
        for key, entry in list(self._entries.items()):
            if now >= entry[1] and self._entries.get(key) is entry:
                del self._entries[key]
                removed += 1
        return removed

    async def clear(self) -> None:
        self._entries.clear()


class RedisRouteCache(RouteCache):
    """Кэш в Redis; срок жизни обеспечивает TTL ключа."""

    KEY_PATTERN = "route:*"

    def __init__(self, redis: "RedisClient", ttl_seconds: int = DEFAULT_ROUTE_TTL) -> None:
        self._redis = redis
        self._ttl = int(ttl_seconds)

    async def get(self, key: RouteCacheKey) -> Route | None:
        return await self._redis.get_model(key.as_string(), Route)

    async def put(self, key: RouteCacheKey, route: Route) -> None:
        await self._redis.set_model(key.as_string(), route, ttl=self._ttl)

    async def purge_expired(self) -> int:
        # Redis сам удаляет ключи по EX
        return 0

    async def clear(self) -> None:
        await self._redis.delete_pattern(self.KEY_PATTERN)


def build_route_cache(settings: "Settings", redis: "RedisClient | None" = None) -> RouteCache:
    """Создаёт кэш согласно настройке ROUTE_CACHE_BACKEND."""
    ttl = settings.routing.ROUTE_CACHE_TTL
    if settings.routing.ROUTE_CACHE_BACKEND == "redis":
        if redis is None:
            from livetrack.infra.redis_client import get_redis
            redis = get_redis()
        return RedisRouteCache(redis, ttl_seconds=ttl)
    return InMemoryRouteCache(ttl_seconds=ttl)
