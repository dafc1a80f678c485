# livetrack/core/routing/providers/mapbox.py
"""
Провайдер Mapbox Directions API.

Формат ответа совпадает с OSRM, отличаются URL и авторизация по токену.
"""

from __future__ import annotations

from typing import Any

import httpx

from livetrack.common.constants import RoutingProviderId
from livetrack.core.geo.models import Location
from livetrack.core.routing.models import RouteOptions
from livetrack.core.routing.providers.osrm import OsrmProvider


class MapboxProvider(OsrmProvider):
    """GET {base}/{profile}/{lng,lat;...}?access_token=..."""

    provider_id = RoutingProviderId.MAPBOX

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.mapbox.com/directions/v5/mapbox",
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(base_url=base_url, client=client, timeout=timeout)
        self._access_token = access_token

    async def fetch_route(
        self,
        origin: Location,
        destination: Location,
        options: RouteOptions,
    ) -> dict[str, Any]:
        if not self._access_token:
            raise self.error("Mapbox access token не настроен")

        url = f"{self._base_url}/{options.mode.value}/{self.lng_lat_path(origin, destination, options)}"
        params = {
            "access_token": self._access_token,
            "geometries": "polyline",
            "steps": "true",
            "overview": "full",
            "alternatives": "true" if options.alternatives else "false",
        }
        data = await self._get_json(url, params)

        if data.get("code") != "Ok":
            raise self.error(f"код ответа {data.get('code')!r}")
        if not data.get("routes"):
            raise self.error("маршрут не найден")
        return data
