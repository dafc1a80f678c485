# livetrack/core/routing/__init__.py
"""
Маршрутизация: провайдеры, кэш маршрутов, агрегатор.
"""

from livetrack.core.routing.aggregator import RoutingAggregator
from livetrack.core.routing.cache import InMemoryRouteCache, RedisRouteCache, RouteCache, build_route_cache
from livetrack.core.routing.models import EtaResult, Route, RouteCacheKey, RouteOptions

__all__ = [
    "EtaResult",
    "InMemoryRouteCache",
    "RedisRouteCache",
    "Route",
    "RouteCache",
    "RouteCacheKey",
    "RouteOptions",
    "RoutingAggregator",
    "build_route_cache",
]
