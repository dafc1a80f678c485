# livetrack/core/routing/providers/base.py
"""
Базовый адаптер провайдера маршрутизации.

Адаптер делает HTTP-запрос к провайдеру и приводит ответ к модели Route.
Любой некорректный ответ превращается в ProviderError, частичные данные
наружу не отдаются.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx
import polyline

from livetrack.common.constants import RoutingProviderId
from livetrack.common.exceptions import ProviderError
from livetrack.core.geo.geo_math import bounding_box
from livetrack.core.geo.models import Location
from livetrack.core.routing.models import Route, RouteLeg, RouteOptions


class RoutingProviderAdapter(ABC):
    """Адаптер внешнего провайдера маршрутов."""

    provider_id: RoutingProviderId

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 10.0) -> None:
        """
        Args:
            client: HTTP клиент (для тестов можно передать клиент с MockTransport)
            timeout: Таймаут HTTP запроса в секундах
        """
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    @abstractmethod
    async def fetch_route(
        self,
        origin: Location,
        destination: Location,
        options: RouteOptions,
    ) -> dict[str, Any]:
        """Запрашивает маршрут у провайдера, возвращает декодированный JSON."""

    @abstractmethod
    def parse_route(self, route_data: dict[str, Any], options: RouteOptions) -> Route:
        """Приводит один маршрут из ответа провайдера к Route."""

    def normalize(self, raw: dict[str, Any], options: RouteOptions) -> Route:
        """Первый маршрут ответа; остальные становятся альтернативами."""
        routes = raw["routes"]
        primary = self.parse_route(routes[0], options)
        if len(routes) == 1:
            return primary
        alternatives = tuple(self.parse_route(r, options) for r in routes[1:])
        return primary.model_copy(update={"alternatives": alternatives})

    async def get_route(
        self,
        origin: Location,
        destination: Location,
        options: RouteOptions,
    ) -> Route:
        """Запрос + нормализация."""
        raw = await self.fetch_route(origin, destination, options)
        try:
            return self.normalize(raw, options)
        except ProviderError:
            raise
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            raise self.error(f"некорректный ответ: {e!r}") from e

    # =========================================================================
    # ОБЩИЕ ПОМОЩНИКИ
    # =========================================================================

    def error(self, reason: str) -> ProviderError:
        return ProviderError(self.provider_id.value, reason)

    async def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET-запрос; транспортные ошибки, не-200 и не-JSON дают ProviderError."""
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise self.error(f"ошибка транспорта: {e!r}") from e

        if response.status_code != 200:
            raise self.error(f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise self.error("ответ не является JSON") from e

        if not isinstance(data, dict):
            raise self.error("ответ не является JSON объектом")
        return data

    @staticmethod
    def lng_lat_path(origin: Location, destination: Location, options: RouteOptions) -> str:
        """Координаты в формате lng,lat;lng,lat;... (OSRM, Mapbox)."""
        points = [origin, *options.waypoints, destination]
        return ";".join(f"{p.longitude},{p.latitude}" for p in points)

    def decode_geometry(self, encoded: str, precision: int = 5) -> tuple[Location, ...]:
        """Декодирует polyline провайдера; повреждённая строка даёт ProviderError."""
        if not isinstance(encoded, str):
            raise self.error("polyline не является строкой")
        try:
            return tuple(
                Location(latitude=lat, longitude=lon)
                for lat, lon in polyline.decode(encoded, precision)
            )
        except (IndexError, TypeError, ValueError) as e:
            raise self.error(f"некорректная polyline: {e!r}") from e

    def build_route(
        self,
        *,
        geometry: tuple[Location, ...],
        encoded: str,
        distance_meters: float,
        duration_seconds: float,
        options: RouteOptions,
        legs: tuple[RouteLeg, ...] = (),
        metadata: dict[str, Any] | None = None,
        alternatives: tuple[Route, ...] = (),
    ) -> Route:
        if distance_meters < 0 or duration_seconds < 0:
            raise self.error("отрицательные расстояние или время")
        return Route(
            geometry=geometry,
            encoded_polyline=encoded,
            distance_meters=float(distance_meters),
            duration_seconds=float(duration_seconds),
            bounding_box=bounding_box(geometry),
            provider_id=self.provider_id,
            mode=options.mode,
            legs=legs,
            metadata=metadata or {},
            alternatives=alternatives,
        )

