# livetrack/core/routing/providers/osrm.py
"""
Провайдер OSRM (Open Source Routing Machine). Провайдер по умолчанию.
"""

from __future__ import annotations

from typing import Any

import httpx

from livetrack.common.constants import RoutingProviderId
from livetrack.core.geo.models import Location
from livetrack.core.routing.models import Route, RouteLeg, RouteOptions, RouteStep
from livetrack.core.routing.providers.base import RoutingProviderAdapter


class OsrmProvider(RoutingProviderAdapter):
    """GET {base}/route/v1/{profile}/{lng,lat;...}"""

    provider_id = RoutingProviderId.OSRM

    def __init__(
        self,
        base_url: str = "http://router.project-osrm.org",
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self._base_url = base_url.rstrip("/")

    async def fetch_route(
        self,
        origin: Location,
        destination: Location,
        options: RouteOptions,
    ) -> dict[str, Any]:
        url = (
            f"{self._base_url}/route/v1/{options.mode.value}/"
            f"{self.lng_lat_path(origin, destination, options)}"
        )
        params = {
            "overview": "full",
            "geometries": "polyline",
            "steps": "true",
            "alternatives": "true" if options.alternatives else "false",
        }
        data = await self._get_json(url, params)

        if data.get("code") != "Ok":
            raise self.error(f"код ответа {data.get('code')!r}")
        if not data.get("routes"):
            raise self.error("маршрут не найден")
        return data

    def parse_route(self, route_data: dict[str, Any], options: RouteOptions) -> Route:
        encoded = route_data["geometry"]
        return self.build_route(
            geometry=self.decode_geometry(encoded),
            encoded=encoded,
            distance_meters=route_data["distance"],
            duration_seconds=route_data["duration"],
            options=options,
            legs=self._legs(route_data.get("legs", [])),
            metadata={
                "weight": route_data.get("weight"),
                "weight_name": route_data.get("weight_name"),
            },
        )

    def _legs(self, legs: list[dict[str, Any]]) -> tuple[RouteLeg, ...]:
        result = []
        for leg in legs:
            steps = []
            for step in leg.get("steps", []):
                maneuver = step.get("maneuver") or {}
                steps.append(RouteStep(
                    distance_meters=step.get("distance", 0),
                    duration_seconds=step.get("duration", 0),
                    instruction=maneuver.get("instruction") or maneuver.get("type"),
                    name=step.get("name") or None,
                    geometry=self.decode_geometry(step["geometry"]) if step.get("geometry") else (),
                ))
            result.append(RouteLeg(
                distance_meters=leg.get("distance", 0),
                duration_seconds=leg.get("duration", 0),
                steps=tuple(steps),
            ))
        return tuple(result)
