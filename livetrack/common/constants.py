# livetrack/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class TripStatus(str, Enum):
    """Статусы поездки."""
    REQUESTED = "requested"
    MATCHING = "matching"
    ACCEPTED = "accepted"
    DRIVER_EN_ROUTE = "driver_en_route"
    ARRIVED = "arrived"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Статусы, при которых пассажир может следить за водителем
TRACKABLE_STATUSES = frozenset({
    TripStatus.ACCEPTED,
    TripStatus.DRIVER_EN_ROUTE,
    TripStatus.ARRIVED,
    TripStatus.IN_PROGRESS,
})

# Финальные статусы: подписка снимается
TERMINAL_STATUSES = frozenset({
    TripStatus.COMPLETED,
    TripStatus.CANCELLED,
})


class RoutingProviderId(str, Enum):
    """Провайдеры маршрутизации."""
    OSRM = "osrm"
    GOOGLE = "google"
    MAPBOX = "mapbox"


class TravelMode(str, Enum):
    """Способ передвижения."""
    DRIVING = "driving"
    WALKING = "walking"
    CYCLING = "cycling"


class EtaSource(str, Enum):
    """Источник расчёта ETA."""
    PROVIDER = "provider"
    ESTIMATE = "estimate"


class LocationEvent(str, Enum):
    """События, отправляемые подписчику."""
    DRIVER_LOCATION_UPDATE = "driver_location_update"
    DRIVER_LOCATION_INITIAL = "driver_location_initial"
