# livetrack/core/tracking/__init__.py
"""
Трекинг водителей и подписки пассажиров.
"""

from livetrack.core.tracking.broadcast import LocationBroadcastEngine
from livetrack.core.tracking.models import DriverLocationRecord, TripInfo, TripSubscription
from livetrack.core.tracking.store import DriverLocationStore
from livetrack.core.tracking.subscriptions import TripSubscriptionRegistry
from livetrack.core.tracking.zones import ZoneResolver

__all__ = [
    "DriverLocationRecord",
    "DriverLocationStore",
    "LocationBroadcastEngine",
    "TripInfo",
    "TripSubscription",
    "TripSubscriptionRegistry",
    "ZoneResolver",
]
