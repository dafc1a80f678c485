# livetrack/infra/location_repository.py
"""
Журнал позиций водителей в PostgreSQL.

Таблица driver_positions создаётся вне этого сервиса.
"""

from __future__ import annotations

from datetime import datetime, timezone

from livetrack.common.exceptions import PersistenceFailure
from livetrack.core.geo.models import Location
from livetrack.infra.database import DatabaseManager


INSERT_POSITION_SQL = """
    INSERT INTO driver_positions
        (driver_id, trip_id, latitude, longitude, heading, speed, accuracy, zone, recorded_at)
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
"""


class PostgresLocationRepository:
    """Реализация LocationPersistence поверх DatabaseManager."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def save_driver_position(
        self,
        driver_id: str,
        location: Location,
        zone: str | None,
        trip_id: str | None,
    ) -> None:
        """
        Raises:
            PersistenceFailure: Запись не удалась
        """
        recorded_at = location.captured_at or datetime.now(timezone.utc)
        try:
            await self._db.execute(
                INSERT_POSITION_SQL,
                driver_id,
                trip_id,
                location.latitude,
                location.longitude,
                location.heading,
                location.speed,
                location.accuracy,
                zone,
                recorded_at,
            )
        except Exception as e:
            raise PersistenceFailure(f"Ошибка записи позиции водителя {driver_id}: {e}") from e
