# livetrack/core/routing/aggregator.py
"""
Агрегатор маршрутизации.

Порядок обработки запроса:
1. Валидация координат (до обращения к кэшу и провайдерам)
2. Поиск в кэше
3. Вызов провайдера с таймаутом и сохранение в кэш
4. При ошибке - однократный повтор через провайдер по умолчанию
"""

from __future__ import annotations

import asyncio
from typing import Iterable, Mapping

import polyline

from livetrack.common.constants import RoutingProviderId, TypeMsg
from livetrack.common.exceptions import InvalidRequest, ProviderError, RoutingUnavailable
from livetrack.common.logger import log_info, log_warning
from livetrack.core.geo.geo_math import bounding_box, distance_meters, validate_coordinates
from livetrack.core.geo.models import Location
from livetrack.core.routing.cache import RouteCache
from livetrack.core.routing.models import EtaResult, Route, RouteCacheKey, RouteOptions
from livetrack.core.routing.providers.base import RoutingProviderAdapter


# Точки ниже этого расстояния считаются совпадающими
SAME_POINT_METERS = 1.0

# Фиксированная пара точек для проверки провайдеров
HEALTH_CHECK_ORIGIN = Location(latitude=48.8566, longitude=2.3522)
HEALTH_CHECK_DESTINATION = Location(latitude=48.8606, longitude=2.3376)


class RoutingAggregator:
    """
    Единая точка получения маршрутов.

    Провайдеры вызываются вне каких-либо блокировок; результат
    неизменяем и может разделяться через кэш.
    """

    def __init__(
        self,
        providers: Mapping[RoutingProviderId, RoutingProviderAdapter],
        cache: RouteCache,
        default_provider: RoutingProviderId = RoutingProviderId.OSRM,
        timeout: float = 10.0,
        precision: int = 5,
    ) -> None:
        """
        Args:
            providers: Адаптеры по идентификатору провайдера
            cache: Кэш маршрутов
            default_provider: Провайдер для повторной попытки
            timeout: Ограничение времени вызова провайдера, секунды
            precision: Точность округления координат в ключе кэша
        """
        self._providers = dict(providers)
        self._cache = cache
        self._default_provider = default_provider
        self._timeout = timeout
        self._precision = precision

    @property
    def default_provider(self) -> RoutingProviderId:
        return self._default_provider

    @property
    def cache(self) -> RouteCache:
        return self._cache

    async def aclose(self) -> None:
        """Закрывает HTTP клиенты всех провайдеров."""
        for adapter in self._providers.values():
            await adapter.aclose()

    # =========================================================================
    # ПУБЛИЧНЫЕ ОПЕРАЦИИ
    # =========================================================================

    async def get_route(
        self,
        origin: Location | None,
        destination: Location | None,
        options: RouteOptions | None = None,
    ) -> Route:
        """
        Маршрут между двумя точками.

        Raises:
            InvalidRequest: Некорректные координаты
            RoutingUnavailable: Все попытки провайдеров неудачны
        """
        options = options or RouteOptions()
        self._validate(origin, destination, options)

        if not options.waypoints and distance_meters(origin, destination) < SAME_POINT_METERS:
            return self._zero_route(origin, destination, options)

        errors: list[ProviderError] = []
        try:
            return await self._route_from_provider(origin, destination, options)
        except ProviderError as e:
            errors.append(e)
            await log_warning(f"Провайдер {e.provider_id} недоступен: {e.reason}")

        if options.provider_id != self._default_provider:
            fallback = options.model_copy(update={"provider_id": self._default_provider})
            await log_info(
                f"Повтор через провайдер по умолчанию {self._default_provider.value}",
                type_msg=TypeMsg.WARNING,
            )
            try:
                return await self._route_from_provider(origin, destination, fallback)
            except ProviderError as e:
                errors.append(e)
                await log_warning(f"Провайдер {e.provider_id} недоступен: {e.reason}")

        raise RoutingUnavailable(errors)

    async def get_route_with_waypoints(
        self,
        origin: Location | None,
        destination: Location | None,
        waypoints: Iterable[Location],
        options: RouteOptions | None = None,
    ) -> Route:
        """Маршрут через промежуточные точки."""
        options = (options or RouteOptions()).model_copy(update={"waypoints": tuple(waypoints)})
        return await self.get_route(origin, destination, options)

    async def calculate_eta(
        self,
        origin: Location | None,
        destination: Location | None,
        options: RouteOptions | None = None,
    ) -> EtaResult:
        """Время и расстояние в пути по маршруту."""
        route = await self.get_route(origin, destination, options)
        return EtaResult(
            duration_seconds=route.duration_seconds,
            distance_meters=route.distance_meters,
            mode=route.mode,
            provider_id=route.provider_id,
        )

    async def health_check(self) -> dict[str, str]:
        """
        Проверка всех провайдеров на фиксированной паре точек (без кэша).

        Returns:
            {провайдер: "healthy" | "unhealthy: <причина>"}
        """
        async def check_one(provider_id: RoutingProviderId, adapter: RoutingProviderAdapter) -> str:
            try:
                await self._call_provider(
                    adapter,
                    HEALTH_CHECK_ORIGIN,
                    HEALTH_CHECK_DESTINATION,
                    RouteOptions(provider_id=provider_id),
                )
            except ProviderError as e:
                return f"unhealthy: {e.reason}"
            return "healthy"

        items = list(self._providers.items())
        results = await asyncio.gather(*(check_one(pid, adapter) for pid, adapter in items))
        return {pid.value: status for (pid, _), status in zip(items, results)}

    # =========================================================================
    # ВНУТРЕННИЕ МЕТОДЫ
    # =========================================================================

    @staticmethod
    def _validate(
        origin: Location | None,
        destination: Location | None,
        options: RouteOptions,
    ) -> None:
        if origin is None or destination is None:
            raise InvalidRequest("Не указаны начальная или конечная точка")
        for point in (origin, destination, *options.waypoints):
            if not validate_coordinates(point.latitude, point.longitude):
                raise InvalidRequest(
                    f"Некорректные координаты: ({point.latitude}, {point.longitude})"
                )

    @staticmethod
    def _zero_route(origin: Location, destination: Location, options: RouteOptions) -> Route:
        geometry = (origin, destination)
        return Route(
            geometry=geometry,
            encoded_polyline=polyline.encode([p.coordinates for p in geometry]),
            distance_meters=0.0,
            duration_seconds=0.0,
            bounding_box=bounding_box(geometry),
            provider_id=options.provider_id,
            mode=options.mode,
        )

    async def _route_from_provider(
        self,
        origin: Location,
        destination: Location,
        options: RouteOptions,
    ) -> Route:
        """Кэш, затем провайдер; успешный результат кладётся в кэш."""
        key = RouteCacheKey.build(origin, destination, options, precision=self._precision)

        cached = await self._cache_get(key)
        if cached is not None:
            return cached

        adapter = self._providers.get(options.provider_id)
        if adapter is None:
            raise ProviderError(options.provider_id.value, "провайдер не настроен")

        route = await self._call_provider(adapter, origin, destination, options)
        await self._cache_put(key, route)
        return route

    async def _call_provider(
        self,
        adapter: RoutingProviderAdapter,
        origin: Location,
        destination: Location,
        options: RouteOptions,
    ) -> Route:
        """Вызов провайдера; превышение таймаута отменяет запрос."""
        try:
            return await asyncio.wait_for(
                adapter.get_route(origin, destination, options),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(
                adapter.provider_id.value, f"таймаут {self._timeout} с"
            ) from e

    async def _cache_get(self, key: RouteCacheKey) -> Route | None:
        try:
            return await self._cache.get(key)
        except Exception as e:
            await log_warning(f"Ошибка чтения кэша маршрутов: {e}")
            return None

    async def _cache_put(self, key: RouteCacheKey, route: Route) -> None:
        try:
            await self._cache.put(key, route)
        except Exception as e:
            await log_warning(f"Ошибка записи в кэш маршрутов: {e}")
