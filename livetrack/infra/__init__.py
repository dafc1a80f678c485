# livetrack/infra/__init__.py
"""
Инфраструктурный слой.
Работа с внешними сервисами: PostgreSQL, Redis, сервис поездок.
"""

from livetrack.infra.database import DatabaseManager, get_db
from livetrack.infra.location_repository import PostgresLocationRepository
from livetrack.infra.redis_client import RedisClient, get_redis
from livetrack.infra.trip_client import TripServiceClient

__all__ = [
    "DatabaseManager",
    "get_db",
    "PostgresLocationRepository",
    "RedisClient",
    "get_redis",
    "TripServiceClient",
]
