# livetrack/core/routing/providers/google.py
"""
Провайдер Google Directions API.

Координаты передаются в порядке lat,lng. Расстояние и время
суммируются по всем участкам маршрута.
"""

from __future__ import annotations

from typing import Any

import httpx

from livetrack.common.constants import RoutingProviderId, TravelMode
from livetrack.core.geo.models import Location
from livetrack.core.routing.models import Route, RouteLeg, RouteOptions, RouteStep
from livetrack.core.routing.providers.base import RoutingProviderAdapter


GOOGLE_MODES: dict[TravelMode, str] = {
    TravelMode.DRIVING: "driving",
    TravelMode.WALKING: "walking",
    TravelMode.CYCLING: "bicycling",
}


def _lat_lng(point: Location) -> str:
    return f"{point.latitude},{point.longitude}"


def _location(data: dict[str, Any] | None) -> Location | None:
    if not data:
        return None
    return Location(latitude=data["lat"], longitude=data["lng"])


class GoogleProvider(RoutingProviderAdapter):
    """Google Maps Directions."""

    provider_id = RoutingProviderId.GOOGLE

    DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"

    def __init__(
        self,
        api_key: str,
        directions_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self._api_key = api_key
        self._url = directions_url or self.DIRECTIONS_URL

    async def fetch_route(
        self,
        origin: Location,
        destination: Location,
        options: RouteOptions,
    ) -> dict[str, Any]:
        if not self._api_key:
            raise self.error("Google Maps API key не настроен")

        params = {
            "origin": _lat_lng(origin),
            "destination": _lat_lng(destination),
            "mode": GOOGLE_MODES[options.mode],
            "key": self._api_key,
            "alternatives": "true" if options.alternatives else "false",
        }
        if options.waypoints:
            params["waypoints"] = "|".join(_lat_lng(wp) for wp in options.waypoints)
        if options.avoid:
            params["avoid"] = "|".join(options.avoid)

        data = await self._get_json(self._url, params)

        if data.get("status") != "OK":
            raise self.error(f"статус ответа {data.get('status')!r}")
        if not data.get("routes"):
            raise self.error("маршрут не найден")
        return data

    def _legs(self, legs: list[dict[str, Any]]) -> tuple[RouteLeg, ...]:
        result = []
        for leg in legs:
            steps = tuple(
                RouteStep(
                    distance_meters=step["distance"]["value"],
                    duration_seconds=step["duration"]["value"],
                    instruction=step.get("html_instructions"),
                    geometry=self.decode_geometry(step["polyline"]["points"])
                    if step.get("polyline") else (),
                )
                for step in leg.get("steps", [])
            )
            result.append(RouteLeg(
                distance_meters=leg["distance"]["value"],
                duration_seconds=leg["duration"]["value"],
                start=_location(leg.get("start_location")),
                end=_location(leg.get("end_location")),
                steps=steps,
            ))
        return tuple(result)

    def parse_route(self, route_data: dict[str, Any], options: RouteOptions) -> Route:
        encoded = route_data["overview_polyline"]["points"]
        legs = self._legs(route_data["legs"])
        if not legs:
            raise self.error("маршрут без участков")
        return self.build_route(
            geometry=self.decode_geometry(encoded),
            encoded=encoded,
            distance_meters=sum(leg.distance_meters for leg in legs),
            duration_seconds=sum(leg.duration_seconds for leg in legs),
            options=options,
            legs=legs,
            metadata={
                "summary": route_data.get("summary"),
                "warnings": route_data.get("warnings", []),
                "copyrights": route_data.get("copyrights"),
            },
        )
