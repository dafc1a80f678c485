# livetrack/infra/trip_client.py
"""
HTTP клиент сервиса поездок.

Реализует AccessControl и TripDirectory: права доступа определяются
по участникам поездки (пассажир / назначенный водитель).
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ValidationError, field_validator

from livetrack.common.constants import TripStatus
from livetrack.common.logger import log_warning
from livetrack.core.geo.models import Location
from livetrack.core.tracking.models import TripInfo


class TripLocationDTO(BaseModel):
    lat: float
    lon: float
    address: str | None = None


class TripDTO(BaseModel):
    """Ответ GET /api/v1/trips/{trip_id} (используемые поля)."""
    id: str
    passenger_id: str | None = None
    driver_id: str | None = None
    status: str
    pickup_location: TripLocationDTO | None = None
    destination_location: TripLocationDTO | None = None

    @field_validator("id", "passenger_id", "driver_id", mode="before")
    @classmethod
    def id_to_str(cls, v: Any) -> Any:
        """Идентификаторы приходят как UUID или int."""
        if v is None:
            return None
        return str(v)


def _to_location(dto: TripLocationDTO | None) -> Location | None:
    if dto is None:
        return None
    return Location(latitude=dto.lat, longitude=dto.lon)


class TripServiceClient:
    """Клиент REST API сервиса поездок."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if base_url is None:
            from livetrack.config import settings
            base_url = settings.deployment.trip_service_url
            timeout = settings.deployment.TRIP_SERVICE_TIMEOUT

        self.base_url = base_url
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def close(self) -> None:
        await self.client.aclose()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self.client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    async def get_trip(self, trip_id: str) -> TripDTO | None:
        """Поездка по id; None, если не найдена."""
        try:
            data = await self._get(f"/{trip_id}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise
        return TripDTO.model_validate(data)

    async def get_trip_status(self, trip_id: str) -> TripInfo | None:
        """Статус и точки поездки; None, если поездка неизвестна или сервис недоступен."""
        try:
            trip = await self.get_trip(trip_id)
        except (httpx.HTTPError, ValidationError) as e:
            await log_warning(f"Не удалось получить поездку {trip_id}: {e}")
            return None
        if trip is None:
            return None

        try:
            status = TripStatus(trip.status)
        except ValueError:
            await log_warning(f"Неизвестный статус поездки {trip_id}: {trip.status}")
            return None

        return TripInfo(
            trip_id=trip.id,
            status=status,
            driver_id=trip.driver_id,
            rider_id=trip.passenger_id,
            pickup_location=_to_location(trip.pickup_location),
            destination_location=_to_location(trip.destination_location),
        )

    async def validate_rider_trip_access(self, rider_id: str, trip_id: str) -> bool:
        """Пассажир имеет доступ только к своей поездке."""
        try:
            trip = await self.get_trip(trip_id)
        except (httpx.HTTPError, ValidationError) as e:
            await log_warning(f"Проверка доступа к поездке {trip_id} не удалась: {e}")
            return False
        return trip is not None and trip.passenger_id == str(rider_id)

    async def validate_driver_trip_access(self, driver_id: str, trip_id: str) -> bool:
        """Водитель имеет доступ только к назначенной ему поездке."""
        try:
            trip = await self.get_trip(trip_id)
        except (httpx.HTTPError, ValidationError) as e:
            await log_warning(f"Проверка доступа к поездке {trip_id} не удалась: {e}")
            return False
        return trip is not None and trip.driver_id == str(driver_id)
