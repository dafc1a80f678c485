# livetrack/services/routing/app.py
"""
FastAPI приложение Routing.

Endpoints:
- POST /api/v1/routing/route - маршрут между точками
- POST /api/v1/routing/eta - время в пути
- GET /api/v1/routing/health - состояние провайдеров
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import BaseModel, Field

from livetrack import __version__
from livetrack.common.constants import RoutingProviderId, TravelMode, TypeMsg
from livetrack.common.exceptions import LiveTrackError
from livetrack.common.logger import log_info, setup_logging
from livetrack.core.geo.models import Location
from livetrack.core.routing.aggregator import RoutingAggregator
from livetrack.core.routing.models import Route, RouteOptions
from livetrack.services.common import (
    HealthCheck,
    HealthStatus,
    PointDTO,
    check_dependencies,
    http_error,
)


# === MODELS ===

class RouteRequest(BaseModel):
    """Запрос маршрута. Неизвестный провайдер отклоняется при разборе."""
    origin: PointDTO | None = None
    destination: PointDTO | None = None
    mode: TravelMode = TravelMode.DRIVING
    provider: RoutingProviderId = RoutingProviderId.OSRM
    waypoints: list[PointDTO] = Field(default_factory=list)
    alternatives: bool = False
    avoid: list[str] = Field(default_factory=list)

    def points(self) -> tuple[Location | None, Location | None]:
        def to_location(point: PointDTO | None) -> Location | None:
            if point is None:
                return None
            return Location(latitude=point.latitude, longitude=point.longitude)

        return to_location(self.origin), to_location(self.destination)

    def options(self) -> RouteOptions:
        return RouteOptions(
            mode=self.mode,
            provider_id=self.provider,
            waypoints=tuple(
                Location(latitude=wp.latitude, longitude=wp.longitude) for wp in self.waypoints
            ),
            alternatives=self.alternatives,
            avoid=tuple(self.avoid),
        )


class EtaResponse(BaseModel):
    """Время прибытия."""
    duration_seconds: float
    eta_minutes: int
    distance_meters: float
    mode: TravelMode
    provider: RoutingProviderId


# === SERVICE SINGLETON ===

_service: RoutingAggregator | None = None
_health_checks: dict[str, HealthCheck] = {}


def get_service() -> RoutingAggregator:
    """Получить агрегатор маршрутов."""
    if _service is None:
        raise RuntimeError("Service not initialized")
    return _service


# === LIFESPAN ===

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    global _service

    from livetrack.config import settings
    from livetrack.services.common import build_health_checks, close_aggregator, create_aggregator
    from livetrack.worker.maintenance import RouteCachePurger

    setup_logging()

    _service = await create_aggregator(settings)
    _health_checks.update(build_health_checks(settings, with_database=False))
    purger = RouteCachePurger(_service.cache, settings.tracking.CACHE_PURGE_INTERVAL)
    await purger.start()

    await log_info("Routing запущен", type_msg=TypeMsg.INFO)

    yield

    await purger.stop()
    await close_aggregator(_service)
    _service = None
    _health_checks.clear()


# === APP ===

app = FastAPI(
    title="Routing",
    description="Маршруты и ETA через внешних провайдеров с кэшем и fallback.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    """Проверка здоровья сервиса и кэша маршрутов."""
    status, dependencies = await check_dependencies(_health_checks)
    return HealthStatus(
        status=status,
        service="routing",
        version=__version__,
        dependencies=dependencies,
    )


@app.post(
    "/api/v1/routing/route",
    response_model=Route,
    tags=["Routing"],
    summary="Маршрут между точками",
)
async def get_route(request: RouteRequest) -> Route:
    origin, destination = request.points()
    try:
        return await get_service().get_route(origin, destination, request.options())
    except LiveTrackError as e:
        raise http_error(e) from e


@app.post(
    "/api/v1/routing/eta",
    response_model=EtaResponse,
    tags=["Routing"],
    summary="Время в пути",
)
async def get_eta(request: RouteRequest) -> EtaResponse:
    origin, destination = request.points()
    try:
        eta = await get_service().calculate_eta(origin, destination, request.options())
    except LiveTrackError as e:
        raise http_error(e) from e

    return EtaResponse(
        duration_seconds=eta.duration_seconds,
        eta_minutes=eta.eta_minutes,
        distance_meters=eta.distance_meters,
        mode=eta.mode,
        provider=eta.provider_id,
    )


@app.get(
    "/api/v1/routing/health",
    response_model=HealthStatus,
    tags=["Health"],
    summary="Состояние провайдеров",
)
async def providers_health() -> HealthStatus:
    """Проверка провайдеров фиксированным запросом (без кэша)."""
    providers = await get_service().health_check()
    healthy = sum(1 for status in providers.values() if status == "healthy")
    if healthy == len(providers):
        status = "healthy"
    elif healthy:
        status = "degraded"
    else:
        status = "unhealthy"
    return HealthStatus(
        status=status,
        service="routing",
        version=__version__,
        dependencies=providers,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8092)
