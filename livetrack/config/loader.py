# livetrack/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины: config/config.json.
Секретные данные переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации (можно переопределить LIVETRACK_CONFIG)."""
    override = os.getenv("LIVETRACK_CONFIG")
    if override:
        return Path(override)
    return get_project_root() / "config" / "config.json"


def load_config_json(path: Path | None = None) -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = path or get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "livetrack"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"


class DeploymentSettings(BaseModel):
    """Хосты и порты сервисов."""
    REALTIME_LOCATION_HOST: str = "0.0.0.0"
    REALTIME_LOCATION_PORT: int = 8090
    ROUTING_SERVICE_HOST: str = "0.0.0.0"
    ROUTING_SERVICE_PORT: int = 8092
    TRIP_SERVICE_HOST: str = "trip_service"
    TRIP_SERVICE_PORT: int = 8085
    TRIP_SERVICE_TIMEOUT: float = 5.0

    @property
    def trip_service_url(self) -> str:
        """Базовый URL сервиса поездок."""
        return f"http://{self.TRIP_SERVICE_HOST}:{self.TRIP_SERVICE_PORT}/api/v1/trips"


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/livetrack.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760
    LOG_BACKUP_COUNT: int = 5


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL (журнал позиций водителей)."""
    DB_ENABLED: bool = False
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "livetrack"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 2
    DB_MAX_POOL_SIZE: int = 10
    DB_COMMAND_TIMEOUT: int = 10

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RedisSettings(BaseModel):
    """Настройки Redis."""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_NAMESPACE: str = "livetrack"
    REDIS_MAX_CONNECTIONS: int = 50

    @field_validator("REDIS_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("REDIS_PASSWORD", "")
        return v

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class RoutingSettings(BaseModel):
    """Настройки провайдеров маршрутизации и кэша маршрутов."""
    DEFAULT_PROVIDER: str = "osrm"
    PROVIDER_TIMEOUT_SECONDS: float = 10.0
    ROUTE_CACHE_BACKEND: str = "memory"  # memory, redis
    ROUTE_CACHE_TTL: int = 86400
    COORDINATE_PRECISION: int = 5
    OSRM_BASE_URL: str = "http://router.project-osrm.org"
    GOOGLE_DIRECTIONS_URL: str = "https://maps.googleapis.com/maps/api/directions/json"
    MAPBOX_BASE_URL: str = "https://api.mapbox.com/directions/v5/mapbox"
    GOOGLE_MAPS_API_KEY: str = ""
    MAPBOX_ACCESS_TOKEN: str = ""
    FALLBACK_AVERAGE_SPEED_KMH: float = 30.0

    @field_validator("GOOGLE_MAPS_API_KEY", "MAPBOX_ACCESS_TOKEN", mode="before")
    @classmethod
    def get_from_env(cls, v: str, info) -> str:
        """Получает ключи провайдеров из переменных окружения, если не заданы."""
        if not v:
            return os.getenv(info.field_name, "")
        return v

    @field_validator("ROUTE_CACHE_BACKEND")
    @classmethod
    def check_backend(cls, v: str) -> str:
        """Допустимы только memory и redis."""
        if v not in ("memory", "redis"):
            raise ValueError(f"Неизвестный бэкенд кэша маршрутов: {v}")
        return v


class TrackingSettings(BaseModel):
    """Настройки трекинга и подписок."""
    NOTIFICATION_THROTTLE_MS: int = 1000
    SUBSCRIPTION_IDLE_TIMEOUT: int = 7200
    IDLE_SWEEP_INTERVAL: int = 3600
    CACHE_PURGE_INTERVAL: int = 600


class ZoneDefinition(BaseModel):
    """Операционная зона: имя и замкнутый полигон [[lat, lon], ...]."""
    name: str
    polygon: list[tuple[float, float]]


class ZoneSettings(BaseModel):
    """Операционные зоны для разметки позиций водителей."""
    ZONES: list[ZoneDefinition] = Field(default_factory=list)
    DEFAULT_ZONE: str = "suburbs"


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    routing: RoutingSettings = Field(default_factory=RoutingSettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)
    zones: ZoneSettings = Field(default_factory=ZoneSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def from_dict(cls, config_data: dict[str, Any]) -> "Settings":
        """
        Создаёт Settings из плоского словаря config.json.
        Секреты и адреса переопределяются из переменных окружения.
        """
        # Ключи _comment_* содержат пояснения в JSON
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "livetrack"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", False),
                LOG_LEVEL=data.get("LOG_LEVEL", "INFO"),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            deployment=DeploymentSettings(
                REALTIME_LOCATION_HOST=data.get("REALTIME_LOCATION_HOST", "0.0.0.0"),
                REALTIME_LOCATION_PORT=data.get("REALTIME_LOCATION_PORT", 8090),
                ROUTING_SERVICE_HOST=data.get("ROUTING_SERVICE_HOST", "0.0.0.0"),
                ROUTING_SERVICE_PORT=data.get("ROUTING_SERVICE_PORT", 8092),
                TRIP_SERVICE_HOST=os.getenv("TRIP_SERVICE_HOST", data.get("TRIP_SERVICE_HOST", "trip_service")),
                TRIP_SERVICE_PORT=int(os.getenv("TRIP_SERVICE_PORT", data.get("TRIP_SERVICE_PORT", 8085))),
                TRIP_SERVICE_TIMEOUT=data.get("TRIP_SERVICE_TIMEOUT", 5.0),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=data.get("LOG_LEVEL", "INFO"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/livetrack.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
                LOG_BACKUP_COUNT=data.get("LOG_BACKUP_COUNT", 5),
            ),
            database=DatabaseSettings(
                DB_ENABLED=data.get("DB_ENABLED", False),
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "livetrack")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 2),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 10),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 10),
            ),
            redis=RedisSettings(
                REDIS_HOST=os.getenv("REDIS_HOST", data.get("REDIS_HOST", "localhost")),
                REDIS_PORT=int(os.getenv("REDIS_PORT", data.get("REDIS_PORT", 6379))),
                REDIS_DB=data.get("REDIS_DB", 0),
                REDIS_PASSWORD=os.getenv("REDIS_PASSWORD", data.get("REDIS_PASSWORD", "")),
                REDIS_NAMESPACE=data.get("REDIS_NAMESPACE", "livetrack"),
                REDIS_MAX_CONNECTIONS=data.get("REDIS_MAX_CONNECTIONS", 50),
            ),
            routing=RoutingSettings(
                DEFAULT_PROVIDER=data.get("DEFAULT_PROVIDER", "osrm"),
                PROVIDER_TIMEOUT_SECONDS=data.get("PROVIDER_TIMEOUT_SECONDS", 10.0),
                ROUTE_CACHE_BACKEND=os.getenv("ROUTE_CACHE_BACKEND", data.get("ROUTE_CACHE_BACKEND", "memory")),
                ROUTE_CACHE_TTL=data.get("ROUTE_CACHE_TTL", 86400),
                COORDINATE_PRECISION=data.get("COORDINATE_PRECISION", 5),
                OSRM_BASE_URL=os.getenv("OSRM_BASE_URL", data.get("OSRM_BASE_URL", "http://router.project-osrm.org")),
                GOOGLE_DIRECTIONS_URL=data.get(
                    "GOOGLE_DIRECTIONS_URL", "https://maps.googleapis.com/maps/api/directions/json"
                ),
                MAPBOX_BASE_URL=data.get("MAPBOX_BASE_URL", "https://api.mapbox.com/directions/v5/mapbox"),
                GOOGLE_MAPS_API_KEY=os.getenv("GOOGLE_MAPS_API_KEY", data.get("GOOGLE_MAPS_API_KEY", "")),
                MAPBOX_ACCESS_TOKEN=os.getenv("MAPBOX_ACCESS_TOKEN", data.get("MAPBOX_ACCESS_TOKEN", "")),
                FALLBACK_AVERAGE_SPEED_KMH=data.get("FALLBACK_AVERAGE_SPEED_KMH", 30.0),
            ),
            tracking=TrackingSettings(
                NOTIFICATION_THROTTLE_MS=data.get("NOTIFICATION_THROTTLE_MS", 1000),
                SUBSCRIPTION_IDLE_TIMEOUT=data.get("SUBSCRIPTION_IDLE_TIMEOUT", 7200),
                IDLE_SWEEP_INTERVAL=data.get("IDLE_SWEEP_INTERVAL", 3600),
                CACHE_PURGE_INTERVAL=data.get("CACHE_PURGE_INTERVAL", 600),
            ),
            zones=ZoneSettings(
                ZONES=data.get("ZONES", []),
                DEFAULT_ZONE=data.get("DEFAULT_ZONE", "suburbs"),
            ),
        )

    @classmethod
    def from_config_json(cls, path: Path | None = None) -> "Settings":
        """Создаёт объект Settings из config.json."""
        return cls.from_dict(load_config_json(path))


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
