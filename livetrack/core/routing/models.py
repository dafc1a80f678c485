# livetrack/core/routing/models.py
"""
Модели маршрутизации: параметры запроса, маршрут, ключ кэша, ETA.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from livetrack.common.constants import RoutingProviderId, TravelMode
from livetrack.core.geo.models import BoundingBox, Location


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RouteOptions(BaseModel):
    """Параметры запроса маршрута."""
    model_config = ConfigDict(frozen=True)

    mode: TravelMode = TravelMode.DRIVING
    provider_id: RoutingProviderId = RoutingProviderId.OSRM
    waypoints: tuple[Location, ...] = ()
    alternatives: bool = False
    avoid: tuple[str, ...] = ()


class RouteStep(BaseModel):
    """Шаг маршрута (манёвр)."""
    model_config = ConfigDict(frozen=True)

    distance_meters: float = Field(ge=0)
    duration_seconds: float = Field(ge=0)
    instruction: str | None = None
    name: str | None = None
    geometry: tuple[Location, ...] = ()


class RouteLeg(BaseModel):
    """Участок маршрута между соседними опорными точками."""
    model_config = ConfigDict(frozen=True)

    distance_meters: float = Field(ge=0)
    duration_seconds: float = Field(ge=0)
    start: Location | None = None
    end: Location | None = None
    steps: tuple[RouteStep, ...] = ()


class Route(BaseModel):
    """
    Нормализованный маршрут.

    Создаётся один раз на запрос и больше не меняется; может разделяться
    через кэш между одинаковыми запросами.
    """
    model_config = ConfigDict(frozen=True)

    geometry: tuple[Location, ...]
    encoded_polyline: str = ""
    distance_meters: float = Field(ge=0)
    duration_seconds: float = Field(ge=0)
    bounding_box: BoundingBox | None = None
    provider_id: RoutingProviderId
    mode: TravelMode
    computed_at: datetime = Field(default_factory=_utcnow)
    legs: tuple[RouteLeg, ...] = ()
    metadata: dict[str, Any] = Field(default_factory=dict)
    alternatives: tuple["Route", ...] = ()

    @property
    def distance_km(self) -> float:
        return round(self.distance_meters / 1000, 2)

    @property
    def duration_minutes(self) -> int:
        return round(self.duration_seconds / 60)


class RouteCacheKey(BaseModel):
    """
    Детерминированный ключ кэша маршрута.

    Координаты округляются, поэтому логически одинаковые запросы
    попадают в одну запись.
    """
    model_config = ConfigDict(frozen=True)

    origin: tuple[float, float]
    destination: tuple[float, float]
    mode: TravelMode
    provider_id: RoutingProviderId
    waypoints: tuple[tuple[float, float], ...] = ()
    alternatives: bool = False

    @classmethod
    def build(
        cls,
        origin: Location,
        destination: Location,
        options: RouteOptions,
        precision: int = 5,
    ) -> "RouteCacheKey":
        """Строит ключ с округлением координат до precision знаков."""
        def rounded(point: Location) -> tuple[float, float]:
            return (round(point.latitude, precision), round(point.longitude, precision))

        return cls(
            origin=rounded(origin),
            destination=rounded(destination),
            mode=options.mode,
            provider_id=options.provider_id,
            waypoints=tuple(rounded(wp) for wp in options.waypoints),
            alternatives=options.alternatives,
        )

    def as_string(self) -> str:
        """Строковое представление для внешнего хранилища."""
        def fmt(pair: tuple[float, float]) -> str:
            return f"{pair[0]},{pair[1]}"

        parts = [
            "route",
            self.provider_id.value,
            self.mode.value,
            fmt(self.origin),
            fmt(self.destination),
        ]
        if self.waypoints:
            parts.append("via=" + ";".join(fmt(wp) for wp in self.waypoints))
        if self.alternatives:
            parts.append("alt")
        return ":".join(parts)


class EtaResult(BaseModel):
    """Оценка времени прибытия."""
    model_config = ConfigDict(frozen=True)

    duration_seconds: float
    distance_meters: float
    mode: TravelMode
    provider_id: RoutingProviderId

    @property
    def eta_minutes(self) -> int:
        return max(1, round(self.duration_seconds / 60)) if self.duration_seconds > 0 else 0
