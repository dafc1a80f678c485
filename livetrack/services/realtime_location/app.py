# livetrack/services/realtime_location/app.py
"""
FastAPI приложение Realtime Location.

Приём позиций водителей и трансляция обновлений пассажирам.

Endpoints:
- POST /api/v1/location - позиция водителя
- GET /api/v1/location/{driver_id} - последняя позиция водителя
- GET /api/v1/location - все известные позиции
- POST /api/v1/trips/{trip_id}/status - смена статуса поездки
- WS /ws/trips/{trip_id}?rider_id=... - подписка пассажира
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from livetrack import __version__
from livetrack.common.constants import TripStatus, TypeMsg
from livetrack.common.exceptions import AccessDenied, LiveTrackError
from livetrack.common.logger import log_error, log_info, setup_logging
from livetrack.core.geo.models import Location
from livetrack.core.tracking.broadcast import LocationBroadcastEngine
from livetrack.core.tracking.models import DriverLocationRecord
from livetrack.services.common import HealthCheck, HealthStatus, check_dependencies, http_error
from livetrack.services.realtime_location.connection import WebSocketConnection


# === MODELS ===

class LocationReport(BaseModel):
    """Позиция водителя. Диапазоны координат проверяет хранилище."""
    driver_id: str
    trip_id: str | None = None
    lat: float
    lon: float
    heading: float | None = Field(default=None, ge=0, le=360)
    speed: float | None = Field(default=None, ge=0)  # м/с
    accuracy: float | None = Field(default=None, ge=0)  # метры
    timestamp: datetime | None = None


class LocationResponse(BaseModel):
    """Ответ с позицией."""
    driver_id: str
    trip_id: str | None = None
    lat: float
    lon: float
    heading: float | None = None
    speed: float | None = None
    updated_at: datetime

    @classmethod
    def from_record(cls, record: DriverLocationRecord) -> "LocationResponse":
        return cls(
            driver_id=record.driver_id,
            trip_id=record.active_trip_id,
            lat=record.location.latitude,
            lon=record.location.longitude,
            heading=record.location.heading,
            speed=record.location.speed,
            updated_at=record.updated_at,
        )


class TripStatusUpdate(BaseModel):
    """Уведомление о смене статуса поездки."""
    status: TripStatus


class StatsResponse(BaseModel):
    """Статистика сервиса."""
    total_updates: int
    unique_drivers: int
    active_subscriptions: int
    notifications_sent: int
    notifications_throttled: int
    persistence_failures: int


# === SERVICE SINGLETON ===

_service: LocationBroadcastEngine | None = None
_health_checks: dict[str, HealthCheck] = {}


def get_service() -> LocationBroadcastEngine:
    """Получить движок трансляции."""
    if _service is None:
        raise RuntimeError("Service not initialized")
    return _service


# === LIFESPAN ===

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    global _service

    from livetrack.config import settings
    from livetrack.core.tracking.store import DriverLocationStore
    from livetrack.core.tracking.subscriptions import TripSubscriptionRegistry
    from livetrack.core.tracking.zones import ZoneResolver
    from livetrack.infra.database import get_db
    from livetrack.infra.location_repository import PostgresLocationRepository
    from livetrack.infra.trip_client import TripServiceClient
    from livetrack.services.common import build_health_checks, close_aggregator, create_aggregator
    from livetrack.worker.maintenance import IdleSubscriptionSweeper, RouteCachePurger

    setup_logging()

    aggregator = await create_aggregator(settings)
    trip_client = TripServiceClient()

    persistence = None
    if settings.database.DB_ENABLED:
        db = get_db()
        await db.connect()
        persistence = PostgresLocationRepository(db)

    _service = LocationBroadcastEngine(
        store=DriverLocationStore(),
        registry=TripSubscriptionRegistry(
            throttle_ms=settings.tracking.NOTIFICATION_THROTTLE_MS,
            idle_timeout_seconds=settings.tracking.SUBSCRIPTION_IDLE_TIMEOUT,
        ),
        aggregator=aggregator,
        access_control=trip_client,
        trip_directory=trip_client,
        persistence=persistence,
        zone_resolver=ZoneResolver.from_settings(settings.zones),
        average_speed_kmh=settings.routing.FALLBACK_AVERAGE_SPEED_KMH,
    )

    _health_checks.update(build_health_checks(settings, with_database=persistence is not None))

    workers = [
        IdleSubscriptionSweeper(_service, settings.tracking.IDLE_SWEEP_INTERVAL),
        RouteCachePurger(aggregator.cache, settings.tracking.CACHE_PURGE_INTERVAL),
    ]
    for worker in workers:
        await worker.start()

    await log_info("Realtime Location запущен", type_msg=TypeMsg.INFO)

    yield

    for worker in workers:
        await worker.stop()
    await _service.drain()
    await trip_client.close()
    await close_aggregator(aggregator)
    if persistence is not None:
        await get_db().disconnect()
    _health_checks.clear()
    _service = None


# === APP ===

app = FastAPI(
    title="Realtime Location",
    description="Приём позиций водителей и трансляция обновлений пассажирам.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# === HEALTH CHECK ===

@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    """Проверка здоровья сервиса и его хранилищ (PostgreSQL, Redis)."""
    status, dependencies = await check_dependencies(_health_checks)
    return HealthStatus(
        status=status,
        service="realtime_location",
        version=__version__,
        dependencies=dependencies,
    )


# === STATS ===

@app.get("/stats", response_model=StatsResponse, tags=["Stats"])
async def get_stats() -> StatsResponse:
    """Получить статистику сервиса."""
    return StatsResponse(**get_service().get_stats())


# === LOCATION ENDPOINTS ===

@app.post(
    "/api/v1/location",
    response_model=LocationResponse,
    tags=["Location"],
    summary="Позиция водителя",
)
async def report_location(report: LocationReport) -> LocationResponse:
    """
    Принимает позицию водителя.

    Если указан trip_id, подписчик поездки получает driver_location_update.
    """
    service = get_service()
    location = Location(
        latitude=report.lat,
        longitude=report.lon,
        heading=report.heading,
        speed=report.speed,
        accuracy=report.accuracy,
        captured_at=report.timestamp,
    )
    try:
        record = await service.on_driver_report(report.driver_id, location, report.trip_id)
    except LiveTrackError as e:
        raise http_error(e) from e

    return LocationResponse.from_record(record)


@app.get(
    "/api/v1/location/{driver_id}",
    response_model=LocationResponse,
    responses={404: {"description": "Водитель не найден"}},
    tags=["Location"],
    summary="Последняя позиция водителя",
)
async def get_driver_location(driver_id: str) -> LocationResponse:
    """Последняя известная позиция водителя."""
    record = get_service().get_driver_location(driver_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Водитель не найден")
    return LocationResponse.from_record(record)


@app.get(
    "/api/v1/location",
    response_model=dict[str, LocationResponse],
    tags=["Location"],
    summary="Все позиции водителей",
)
async def get_all_driver_locations() -> dict[str, LocationResponse]:
    records = get_service().get_all_driver_locations()
    return {driver_id: LocationResponse.from_record(r) for driver_id, r in records.items()}


# === TRIP STATUS ===

@app.post(
    "/api/v1/trips/{trip_id}/status",
    tags=["Trips"],
    summary="Смена статуса поездки",
)
async def trip_status_changed(trip_id: str, update: TripStatusUpdate) -> dict[str, Any]:
    """Завершение или отмена поездки снимает подписку пассажира."""
    removed = await get_service().on_trip_status_changed(trip_id, update.status)
    return {"trip_id": trip_id, "status": update.status.value, "subscription_removed": removed}


# === WEBSOCKET ===

@app.websocket("/ws/trips/{trip_id}")
async def trip_updates(
    websocket: WebSocket,
    trip_id: str,
    rider_id: str = Query(...),
) -> None:
    """
    Подписка пассажира на позицию водителя.

    Входящие сообщения:
    - {"action": "ping"}
    - {"action": "unsubscribe"}
    """
    service = get_service()
    await websocket.accept()
    connection = WebSocketConnection(websocket)

    try:
        await service.subscribe(trip_id, rider_id, connection)
    except AccessDenied as e:
        await connection.send_error(str(e))
        await connection.close(code=4403)
        return

    try:
        while True:
            data = await websocket.receive_json()
            action = data.get("action") if isinstance(data, dict) else None

            if action == "ping":
                await websocket.send_json({"type": "pong"})
            elif action == "unsubscribe":
                await service.release_connection(trip_id, connection)
                await connection.close()
                return
    except WebSocketDisconnect:
        await log_info(f"WebSocket поездки {trip_id} закрыт клиентом", type_msg=TypeMsg.DEBUG)
    except Exception as e:
        await log_error(f"Ошибка WebSocket поездки {trip_id}: {e}")
    finally:
        await service.release_connection(trip_id, connection)


# === STARTUP ===

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8090)
