# livetrack/core/tracking/zones.py
"""
Определение операционной зоны по координатам.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from livetrack.core.geo.geo_math import is_point_in_polygon
from livetrack.core.geo.models import Location

if TYPE_CHECKING:
    from livetrack.config.loader import ZoneSettings


class ZoneResolver:
    """
    Первая зона, полигон которой содержит точку; иначе зона по умолчанию.
    """

    def __init__(
        self,
        zones: Sequence[tuple[str, Sequence[Location]]],
        default_zone: str = "suburbs",
    ) -> None:
        self._zones = [(name, tuple(polygon)) for name, polygon in zones]
        self._default_zone = default_zone

    @classmethod
    def from_settings(cls, zone_settings: "ZoneSettings") -> "ZoneResolver":
        zones = [
            (zone.name, [Location.from_pair(pair) for pair in zone.polygon])
            for zone in zone_settings.ZONES
        ]
        return cls(zones, default_zone=zone_settings.DEFAULT_ZONE)

    @property
    def zone_names(self) -> list[str]:
        return [name for name, _ in self._zones]

    def resolve(self, location: Location) -> str:
        for name, polygon in self._zones:
            if is_point_in_polygon(location, polygon):
                return name
        return self._default_zone
