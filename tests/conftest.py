# tests/conftest.py
"""
Общие фикстуры и тестовые двойники.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("REDIS_PASSWORD", "")

from livetrack.common.constants import RoutingProviderId, TravelMode, TripStatus
from livetrack.common.exceptions import ProviderError
from livetrack.core.geo.models import Location
from livetrack.core.routing.aggregator import RoutingAggregator
from livetrack.core.routing.cache import InMemoryRouteCache
from livetrack.core.routing.models import Route, RouteOptions
from livetrack.core.tracking.broadcast import LocationBroadcastEngine
from livetrack.core.tracking.models import TripInfo
from livetrack.core.tracking.store import DriverLocationStore
from livetrack.core.tracking.subscriptions import TripSubscriptionRegistry


# =============================================================================
# ЧАСЫ
# =============================================================================

class FakeClock:
    """Управляемые часы (datetime) для троттлинга и таймаутов."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeMonotonic:
    """Управляемые монотонные часы (секунды) для кэша маршрутов."""

    def __init__(self) -> None:
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


# =============================================================================
# ПРОВАЙДЕРЫ И МАРШРУТЫ
# =============================================================================

def make_route(
    provider_id: RoutingProviderId = RoutingProviderId.OSRM,
    distance: float = 1500.0,
    duration: float = 300.0,
) -> Route:
    """Простой маршрут из двух точек."""
    return Route(
        geometry=(
            Location(latitude=48.8566, longitude=2.3522),
            Location(latitude=48.8606, longitude=2.3376),
        ),
        distance_meters=distance,
        duration_seconds=duration,
        provider_id=provider_id,
        mode=TravelMode.DRIVING,
    )


class FakeProvider:
    """Провайдер с заданным результатом; считает вызовы."""

    def __init__(
        self,
        provider_id: RoutingProviderId,
        route: Route | None = None,
        error: str | None = None,
    ) -> None:
        self.provider_id = provider_id
        self.route = route or make_route(provider_id)
        self.error = error
        self.calls: list[tuple[Location, Location, RouteOptions]] = []
        self.closed = False

    async def get_route(
        self,
        origin: Location,
        destination: Location,
        options: RouteOptions,
    ) -> Route:
        self.calls.append((origin, destination, options))
        if self.error is not None:
            raise ProviderError(self.provider_id.value, self.error)
        return self.route

    async def aclose(self) -> None:
        self.closed = True


# =============================================================================
# ВНЕШНИЕ ЗАВИСИМОСТИ ТРЕКИНГА
# =============================================================================

class FakeConnection:
    """Соединение, записывающее отправленные события."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, dict[str, Any]]] = []

    async def send_json(self, event: str, payload: dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("соединение закрыто")
        self.sent.append((event, payload))

    def events(self, name: str) -> list[dict[str, Any]]:
        return [payload for event, payload in self.sent if event == name]


class FakeTripService:
    """AccessControl + TripDirectory по словарю поездок."""

    def __init__(self, trips: dict[str, TripInfo] | None = None) -> None:
        self.trips = trips or {}

    async def get_trip_status(self, trip_id: str) -> TripInfo | None:
        return self.trips.get(trip_id)

    async def validate_rider_trip_access(self, rider_id: str, trip_id: str) -> bool:
        trip = self.trips.get(trip_id)
        return trip is not None and trip.rider_id == rider_id

    async def validate_driver_trip_access(self, driver_id: str, trip_id: str) -> bool:
        trip = self.trips.get(trip_id)
        return trip is not None and trip.driver_id == driver_id


class FakePersistence:
    """Запоминает сохранённые позиции."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.saved: list[tuple[str, Location, str | None, str | None]] = []

    async def save_driver_position(
        self,
        driver_id: str,
        location: Location,
        zone: str | None,
        trip_id: str | None,
    ) -> None:
        if self.fail:
            raise RuntimeError("БД недоступна")
        self.saved.append((driver_id, location, zone, trip_id))


# =============================================================================
# ФИКСТУРЫ
# =============================================================================

PICKUP = Location(latitude=4.0511, longitude=9.7679)
DESTINATION = Location(latitude=4.0611, longitude=9.7879)


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def osrm_provider() -> FakeProvider:
    return FakeProvider(RoutingProviderId.OSRM, make_route(RoutingProviderId.OSRM, 2000.0, 420.0))


@pytest.fixture
def aggregator(osrm_provider: FakeProvider) -> RoutingAggregator:
    return RoutingAggregator(
        providers={RoutingProviderId.OSRM: osrm_provider},
        cache=InMemoryRouteCache(),
    )


@pytest.fixture
def trip() -> TripInfo:
    return TripInfo(
        trip_id="trip-1",
        status=TripStatus.DRIVER_EN_ROUTE,
        driver_id="driver-1",
        rider_id="rider-1",
        pickup_location=PICKUP,
        destination_location=DESTINATION,
    )


@pytest.fixture
def trip_service(trip: TripInfo) -> FakeTripService:
    return FakeTripService({trip.trip_id: trip})


@pytest.fixture
def persistence() -> FakePersistence:
    return FakePersistence()


@pytest.fixture
def engine(
    clock: FakeClock,
    aggregator: RoutingAggregator,
    trip_service: FakeTripService,
    persistence: FakePersistence,
) -> LocationBroadcastEngine:
    return LocationBroadcastEngine(
        store=DriverLocationStore(clock=clock),
        registry=TripSubscriptionRegistry(throttle_ms=1000, idle_timeout_seconds=7200, clock=clock),
        aggregator=aggregator,
        access_control=trip_service,
        trip_directory=trip_service,
        persistence=persistence,
    )


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def provider_factory() -> type[FakeProvider]:
    return FakeProvider


@pytest.fixture
def route_factory():
    return make_route


@pytest.fixture
def connection_factory() -> type[FakeConnection]:
    return FakeConnection


@pytest.fixture
def pickup() -> Location:
    return PICKUP


@pytest.fixture
def destination() -> Location:
    return DESTINATION
