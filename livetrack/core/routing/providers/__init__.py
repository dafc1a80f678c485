# livetrack/core/routing/providers/__init__.py
"""
Адаптеры провайдеров маршрутизации.

Набор провайдеров закрыт и выбирается через RoutingProviderId.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from livetrack.common.constants import RoutingProviderId
from livetrack.core.routing.providers.base import RoutingProviderAdapter
from livetrack.core.routing.providers.google import GoogleProvider
from livetrack.core.routing.providers.mapbox import MapboxProvider
from livetrack.core.routing.providers.osrm import OsrmProvider

if TYPE_CHECKING:
    from livetrack.config.loader import Settings


def build_providers(settings: "Settings") -> dict[RoutingProviderId, RoutingProviderAdapter]:
    """Создаёт по адаптеру на каждый провайдер из настроек."""
    routing = settings.routing
    timeout = routing.PROVIDER_TIMEOUT_SECONDS
    return {
        RoutingProviderId.OSRM: OsrmProvider(base_url=routing.OSRM_BASE_URL, timeout=timeout),
        RoutingProviderId.GOOGLE: GoogleProvider(
            api_key=routing.GOOGLE_MAPS_API_KEY,
            directions_url=routing.GOOGLE_DIRECTIONS_URL,
            timeout=timeout,
        ),
        RoutingProviderId.MAPBOX: MapboxProvider(
            access_token=routing.MAPBOX_ACCESS_TOKEN,
            base_url=routing.MAPBOX_BASE_URL,
            timeout=timeout,
        ),
    }


__all__ = [
    "GoogleProvider",
    "MapboxProvider",
    "OsrmProvider",
    "RoutingProviderAdapter",
    "build_providers",
]
