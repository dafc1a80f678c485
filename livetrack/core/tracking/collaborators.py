# livetrack/core/tracking/collaborators.py
"""
Контракты внешних зависимостей движка трекинга.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from livetrack.core.geo.models import Location
from livetrack.core.tracking.models import TripInfo


@runtime_checkable
class AccessControl(Protocol):
    """Проверка прав доступа к поездке."""

    async def validate_rider_trip_access(self, rider_id: str, trip_id: str) -> bool: ...

    async def validate_driver_trip_access(self, driver_id: str, trip_id: str) -> bool: ...


@runtime_checkable
class TripDirectory(Protocol):
    """Источник статуса и точек поездки."""

    async def get_trip_status(self, trip_id: str) -> TripInfo | None: ...


@runtime_checkable
class LocationPersistence(Protocol):
    """Долговременная запись позиций (best-effort)."""

    async def save_driver_position(
        self,
        driver_id: str,
        location: Location,
        zone: str | None,
        trip_id: str | None,
    ) -> None: ...


@runtime_checkable
class ConnectionHandle(Protocol):
    """Канал доставки событий подписчику."""

    async def send_json(self, event: str, payload: dict[str, Any]) -> None: ...
