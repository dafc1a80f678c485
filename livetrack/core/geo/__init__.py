# livetrack/core/geo/__init__.py
"""
Геометрия: value-типы, расстояния, полигоны.
"""

from livetrack.core.geo.models import BoundingBox, Location

__all__ = [
    "BoundingBox",
    "Location",
]
