# livetrack/core/tracking/store.py
"""
Хранилище последних позиций водителей (в памяти процесса).
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from livetrack.common.exceptions import InvalidLocation
from livetrack.core.geo.geo_math import validate_coordinates
from livetrack.core.geo.models import Location
from livetrack.core.tracking.locks import KeyedLock
from livetrack.core.tracking.models import DriverLocationRecord, utcnow


class DriverLocationStore:
    """
    driver_id -> последняя DriverLocationRecord.

    Последняя запись побеждает; обновления одного водителя
    применяются в порядке вызова.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._records: dict[str, DriverLocationRecord] = {}
        self._locks = KeyedLock()
        self._clock = clock

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, driver_id: object) -> bool:
        return driver_id in self._records

    async def update(
        self,
        driver_id: str,
        location: Location,
        trip_id: str | None = None,
    ) -> DriverLocationRecord:
        """
        Сохраняет позицию водителя.

        Raises:
            InvalidLocation: Координаты вне допустимого диапазона (состояние не меняется)
        """
        if not validate_coordinates(location.latitude, location.longitude):
            raise InvalidLocation(location.latitude, location.longitude)

        async with self._locks.hold(driver_id):
            record = DriverLocationRecord(
                driver_id=driver_id,
                location=location,
                active_trip_id=trip_id,
                updated_at=self._clock(),
            )
            self._records[driver_id] = record
            return record

    def get(self, driver_id: str) -> DriverLocationRecord | None:
        return self._records.get(driver_id)

    def list_all(self) -> dict[str, DriverLocationRecord]:
        """Копия всех записей."""
        return dict(self._records)

    async def remove(self, driver_id: str) -> DriverLocationRecord | None:
        async with self._locks.hold(driver_id):
            return self._records.pop(driver_id, None)
