# livetrack/core/geo/geo_math.py
"""
Чистые геометрические функции.

Расстояния по большому кругу (Haversine), попадание точки в полигон,
проекция точки на отрезок, ограничивающие прямоугольники.
Без состояния и без I/O.
"""

from __future__ import annotations

import math
from typing import Sequence

from livetrack.core.geo.models import BoundingBox, Location


EARTH_RADIUS_KM = 6371.0


def validate_coordinates(lat: float, lon: float) -> bool:
    """Проверяет, что координаты конечны и лежат в допустимых диапазонах."""
    if lat is None or lon is None:
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Вычисляет расстояние между двумя точками (в км) по формуле Haversine.
    """
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(dlon / 2) ** 2)

    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_meters(origin: Location, destination: Location) -> float:
    """Расстояние по большому кругу между двумя точками, в метрах."""
    return haversine_km(
        origin.latitude, origin.longitude,
        destination.latitude, destination.longitude,
    ) * 1000


def is_point_in_polygon(point: Location, polygon: Sequence[Location]) -> bool:
    """
    Ray casting: луч из точки вдоль оси долготы.

    Граничные точки по правилу полуоткрытых рёбер: точки на нижней (мин. широта)
    и левой (мин. долгота) границах считаются внутри, на верхней и правой снаружи.
    Полигон может быть как замкнутым (последняя точка = первой), так и нет.
    Полигоны через антимеридиан и у полюсов не поддерживаются.
    """
    if len(polygon) < 3:
        return False

    inside = False
    x = point.longitude
    y = point.latitude

    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i].longitude, polygon[i].latitude
        xj, yj = polygon[j].longitude, polygon[j].latitude

        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i

    return inside


def project_point_to_segment(point: Location, start: Location, end: Location) -> Location:
    """
    Проекция точки на отрезок в плоских координатах (lon, lat).
    Если проекция выходит за концы отрезка, возвращается ближайший конец.
    """
    a = point.longitude - start.longitude
    b = point.latitude - start.latitude
    c = end.longitude - start.longitude
    d = end.latitude - start.latitude

    length_sq = c * c + d * d
    if length_sq == 0:
        return Location(latitude=start.latitude, longitude=start.longitude)

    param = (a * c + b * d) / length_sq

    if param < 0:
        return Location(latitude=start.latitude, longitude=start.longitude)
    if param > 1:
        return Location(latitude=end.latitude, longitude=end.longitude)

    return Location(
        latitude=start.latitude + param * d,
        longitude=start.longitude + param * c,
    )


def nearest_point_on_route(point: Location, route: Sequence[Location]) -> Location:
    """Ближайшая к точке позиция на ломаной маршрута."""
    if not route:
        raise ValueError("Маршрут не содержит точек")
    if len(route) == 1:
        return route[0]

    nearest = route[0]
    min_distance = math.inf

    for start, end in zip(route, route[1:]):
        candidate = project_point_to_segment(point, start, end)
        distance = distance_meters(point, candidate)
        if distance < min_distance:
            min_distance = distance
            nearest = candidate

    return nearest


def bounding_box(points: Sequence[Location]) -> BoundingBox | None:
    """Ограничивающий прямоугольник набора точек (None для пустого набора)."""
    if not points:
        return None

    lats = [p.latitude for p in points]
    lons = [p.longitude for p in points]

    return BoundingBox(
        northeast=Location(latitude=max(lats), longitude=max(lons)),
        southwest=Location(latitude=min(lats), longitude=min(lons)),
    )


def bounding_box_around(center: Location, radius_km: float) -> BoundingBox:
    """Прямоугольник, описанный вокруг окружности радиуса radius_km."""
    lat_delta = math.degrees(radius_km / EARTH_RADIUS_KM)
    lon_delta = lat_delta / math.cos(math.radians(center.latitude))

    return BoundingBox(
        northeast=Location(
            latitude=min(90.0, center.latitude + lat_delta),
            longitude=min(180.0, center.longitude + lon_delta),
        ),
        southwest=Location(
            latitude=max(-90.0, center.latitude - lat_delta),
            longitude=max(-180.0, center.longitude - lon_delta),
        ),
    )


def estimate_travel_seconds(distance_m: float, average_speed_kmh: float = 30.0) -> float:
    """Оценка времени в пути по прямой при средней скорости."""
    if average_speed_kmh <= 0:
        raise ValueError("Средняя скорость должна быть положительной")
    return (distance_m / 1000) / average_speed_kmh * 3600
