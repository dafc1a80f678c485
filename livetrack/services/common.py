# livetrack/services/common.py
"""
Общие модели и помощники HTTP-слоя.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable, Mapping

from fastapi import HTTPException
from pydantic import BaseModel, Field

from livetrack.common.constants import RoutingProviderId
from livetrack.common.exceptions import (
    AccessDenied,
    InvalidLocation,
    InvalidRequest,
    LiveTrackError,
    RoutingUnavailable,
)
from livetrack.core.routing.aggregator import RoutingAggregator
from livetrack.core.routing.cache import build_route_cache
from livetrack.core.routing.providers import build_providers
from livetrack.infra.database import get_db
from livetrack.infra.redis_client import get_redis

if TYPE_CHECKING:
    from livetrack.config.loader import Settings


class HealthStatus(BaseModel):
    """Статус здоровья сервиса."""

    service: str
    status: str = "healthy"  # healthy, degraded, unhealthy
    version: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)


HealthCheck = Callable[[], Awaitable[bool]]


def build_health_checks(settings: "Settings", with_database: bool) -> dict[str, HealthCheck]:
    """Проверки внешних зависимостей, которые сервис реально использует."""
    checks: dict[str, HealthCheck] = {}
    if with_database:
        checks["postgres"] = get_db().health_check
    if settings.routing.ROUTE_CACHE_BACKEND == "redis":
        checks["redis"] = get_redis().health_check
    return checks


async def check_dependencies(checks: Mapping[str, HealthCheck]) -> tuple[str, dict[str, str]]:
    """
    Опрашивает зависимости.

    Returns:
        (статус сервиса, статус каждой зависимости); любая неработающая
        зависимость даёт degraded
    """
    dependencies = {
        name: "healthy" if await check() else "unhealthy"
        for name, check in checks.items()
    }
    healthy = all(status == "healthy" for status in dependencies.values())
    return ("healthy" if healthy else "degraded"), dependencies


class PointDTO(BaseModel):
    """Точка во входящих запросах."""
    latitude: float
    longitude: float


def http_error(exc: LiveTrackError) -> HTTPException:
    """Доменная ошибка -> HTTPException с подходящим статусом."""
    match exc:
        case InvalidLocation() | InvalidRequest():
            status_code = 400
        case AccessDenied():
            status_code = 403
        case RoutingUnavailable():
            status_code = 503
        case _:
            status_code = 500
    return HTTPException(status_code=status_code, detail=str(exc))


async def create_aggregator(settings: "Settings") -> RoutingAggregator:
    """Собирает агрегатор маршрутов по настройкам (подключает Redis при необходимости)."""
    redis = None
    if settings.routing.ROUTE_CACHE_BACKEND == "redis":
        redis = get_redis()
        await redis.connect()

    return RoutingAggregator(
        providers=build_providers(settings),
        cache=build_route_cache(settings, redis),
        default_provider=RoutingProviderId(settings.routing.DEFAULT_PROVIDER),
        timeout=settings.routing.PROVIDER_TIMEOUT_SECONDS,
        precision=settings.routing.COORDINATE_PRECISION,
    )


async def close_aggregator(aggregator: RoutingAggregator) -> None:
    await aggregator.aclose()
    redis = get_redis()
    if redis.is_connected:
        await redis.disconnect()
