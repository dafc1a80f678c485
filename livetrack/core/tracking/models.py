# livetrack/core/tracking/models.py
"""
Модели трекинга: позиция водителя, подписка на поездку, события.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict

from livetrack.common.constants import EtaSource, TripStatus
from livetrack.core.geo.models import Location


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DriverLocationRecord(BaseModel):
    """Последняя известная позиция водителя."""
    model_config = ConfigDict(frozen=True)

    driver_id: str
    location: Location
    active_trip_id: str | None = None
    updated_at: datetime


class TripInfo(BaseModel):
    """Данные поездки от сервиса поездок."""
    trip_id: str
    status: TripStatus
    driver_id: str | None = None
    rider_id: str | None = None
    pickup_location: Location | None = None
    destination_location: Location | None = None


@dataclass
class TripSubscription:
    """
    Подписка пассажира на обновления поездки.

    Одна активная подписка на поездку; новая подписка заменяет старую.
    """
    trip_id: str
    rider_id: str
    connection: Any  # ConnectionHandle
    subscribed_at: datetime = field(default_factory=utcnow)
    last_notified_at: datetime | None = None
    last_location: Location | None = None
    last_location_at: datetime | None = None  # время отправленной позиции
    notifications_sent: int = 0


# =============================================================================
# СОБЫТИЯ
# =============================================================================

class EtaInfo(BaseModel):
    """ETA в событии обновления позиции."""
    eta_seconds: float
    eta_minutes: int
    route_distance_meters: float
    source: EtaSource
    provider: str | None = None


class LocationUpdatePayload(BaseModel):
    """Полезная нагрузка driver_location_update / driver_location_initial."""
    trip_id: str
    driver_id: str
    location: Location
    eta: EtaInfo | None = None
    distance_to_destination: float | None = None  # метры, по прямой
    timestamp: datetime

    def to_message(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
