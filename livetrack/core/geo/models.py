# livetrack/core/geo/models.py
"""
Геометрические value-типы.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Location(BaseModel):
    """Точка на карте (неизменяемая)."""
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    accuracy: float | None = None  # метры
    heading: float | None = None  # градусы
    speed: float | None = None  # м/с
    captured_at: datetime | None = None

    @property
    def coordinates(self) -> tuple[float, float]:
        """Пара (lat, lon)."""
        return (self.latitude, self.longitude)

    @classmethod
    def from_pair(cls, pair: tuple[float, float]) -> "Location":
        """Создаёт точку из пары (lat, lon)."""
        return cls(latitude=pair[0], longitude=pair[1])


class BoundingBox(BaseModel):
    """Прямоугольник, ограничивающий набор точек."""
    model_config = ConfigDict(frozen=True)

    northeast: Location
    southwest: Location

    def contains(self, point: Location) -> bool:
        """Проверяет, лежит ли точка внутри (границы включительно)."""
        return (
            self.southwest.latitude <= point.latitude <= self.northeast.latitude
            and self.southwest.longitude <= point.longitude <= self.northeast.longitude
        )
