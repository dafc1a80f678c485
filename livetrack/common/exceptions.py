# livetrack/common/exceptions.py
"""
Иерархия доменных ошибок.
"""

from __future__ import annotations

from typing import Sequence


class LiveTrackError(Exception):
    """Базовая ошибка сервиса."""
    pass


class InvalidLocation(LiveTrackError):
    """Координаты вне допустимого диапазона."""

    def __init__(self, latitude: float, longitude: float) -> None:
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(f"Недопустимые координаты: ({latitude}, {longitude})")


class InvalidRequest(LiveTrackError):
    """Запрос без обязательных полей или с некорректными значениями."""
    pass


class ProviderError(LiveTrackError):
    """Ошибка конкретного провайдера маршрутизации."""

    def __init__(self, provider_id: str, reason: str) -> None:
        self.provider_id = provider_id
        self.reason = reason
        super().__init__(f"Провайдер {provider_id}: {reason}")


class RoutingUnavailable(LiveTrackError):
    """Все провайдеры маршрутизации недоступны."""

    def __init__(self, errors: Sequence[ProviderError] = ()) -> None:
        self.errors = list(errors)
        details = "; ".join(str(e) for e in self.errors) or "нет доступных провайдеров"
        super().__init__(f"Маршрут недоступен: {details}")


class AccessDenied(LiveTrackError):
    """Доступ к поездке запрещён."""
    pass


class PersistenceFailure(LiveTrackError):
    """Ошибка записи в постоянное хранилище."""
    pass
