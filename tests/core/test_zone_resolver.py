# tests/core/test_zone_resolver.py
"""
Тесты определения операционной зоны.
"""

from __future__ import annotations

from livetrack.config.loader import ZoneDefinition, ZoneSettings
from livetrack.core.geo.models import Location
from livetrack.core.tracking.zones import ZoneResolver


ZONES = ZoneSettings(
    ZONES=[
        ZoneDefinition(name="city_centre", polygon=[(4.05, 9.76), (4.05, 9.78), (4.07, 9.78), (4.07, 9.76)]),
        ZoneDefinition(name="business_district", polygon=[(4.03, 9.75), (4.03, 9.77), (4.05, 9.77), (4.05, 9.75)]),
    ],
    DEFAULT_ZONE="suburbs",
)


class TestZoneResolver:
    """Тесты ZoneResolver."""

    def test_inside_zone(self) -> None:
        resolver = ZoneResolver.from_settings(ZONES)
        assert resolver.resolve(Location(latitude=4.06, longitude=9.77)) == "city_centre"
        assert resolver.resolve(Location(latitude=4.04, longitude=9.76)) == "business_district"

    def test_outside_all_zones(self) -> None:
        resolver = ZoneResolver.from_settings(ZONES)
        assert resolver.resolve(Location(latitude=3.0, longitude=9.0)) == "suburbs"

    def test_first_matching_zone_wins(self) -> None:
        """Общая граница: точка на нижней границе центра относится к нему."""
        resolver = ZoneResolver.from_settings(ZONES)
        assert resolver.resolve(Location(latitude=4.05, longitude=9.765)) == "city_centre"

    def test_zone_names(self) -> None:
        resolver = ZoneResolver.from_settings(ZONES)
        assert resolver.zone_names == ["city_centre", "business_district"]

    def test_no_zones(self) -> None:
        resolver = ZoneResolver([], default_zone="unknown")
        assert resolver.resolve(Location(latitude=0, longitude=0)) == "unknown"
