# livetrack/core/tracking/subscriptions.py
"""
Реестр подписок пассажиров на поездки.

Хранит состояние троттлинга: уведомление отправляется не чаще, чем раз
в окно троттлинга. Лишние уведомления отбрасываются, в очередь не ставятся.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable

from livetrack.core.geo.models import Location
from livetrack.core.tracking.locks import KeyedLock
from livetrack.core.tracking.models import TripSubscription, utcnow


class TripSubscriptionRegistry:
    """trip_id -> TripSubscription."""

    def __init__(
        self,
        throttle_ms: int = 1000,
        idle_timeout_seconds: int = 2 * 60 * 60,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._subscriptions: dict[str, TripSubscription] = {}
        self._locks = KeyedLock()
        self._throttle = timedelta(milliseconds=throttle_ms)
        self._idle_timeout = timedelta(seconds=idle_timeout_seconds)
        self._clock = clock

    def __len__(self) -> int:
        return len(self._subscriptions)

    def __contains__(self, trip_id: object) -> bool:
        return trip_id in self._subscriptions

    def get(self, trip_id: str) -> TripSubscription | None:
        return self._subscriptions.get(trip_id)

    def snapshot(self) -> list[TripSubscription]:
        return list(self._subscriptions.values())

    async def subscribe(self, trip_id: str, rider_id: str, connection: Any) -> TripSubscription:
        """Регистрирует подписку, заменяя предыдущую для этой поездки."""
        async with self._locks.hold(trip_id):
            subscription = TripSubscription(
                trip_id=trip_id,
                rider_id=rider_id,
                connection=connection,
                subscribed_at=self._clock(),
            )
            self._subscriptions[trip_id] = subscription
            return subscription

    async def remove(self, trip_id: str, connection: Any | None = None) -> TripSubscription | None:
        """
        Удаляет подписку.

        Если передан connection, подписка удаляется только когда принадлежит
        этому соединению (новая подписка того же trip_id не затрагивается).
        """
        async with self._locks.hold(trip_id):
            current = self._subscriptions.get(trip_id)
            if current is None:
                return None
            if connection is not None and current.connection is not connection:
                return None
            return self._subscriptions.pop(trip_id)

    async def try_reserve_notification(
        self,
        trip_id: str,
        observed_at: datetime | None = None,
    ) -> TripSubscription | None:
        """
        Резервирует окно троттлинга.

        Args:
            trip_id: Поездка
            observed_at: Время позиции; позиция старше уже отправленной не резервируется

        Returns:
            Подписку, если уведомление можно отправить; None, если подписки нет,
            окно ещё не истекло или позиция устарела.
        """
        async with self._locks.hold(trip_id):
            subscription = self._subscriptions.get(trip_id)
            if subscription is None:
                return None

            last_at = subscription.last_location_at
            if observed_at is not None and last_at is not None and observed_at < last_at:
                return None

            now = self._clock()
            last = subscription.last_notified_at
            if last is not None and now - last < self._throttle:
                return None

            subscription.last_notified_at = now
            return subscription

    async def mark_notified(
        self,
        subscription: TripSubscription,
        location: Location,
        observed_at: datetime | None = None,
    ) -> None:
        """Фиксирует отправку; окно троттлинга отсчитывается от момента отправки."""
        async with self._locks.hold(subscription.trip_id):
            subscription.last_notified_at = self._clock()
            subscription.last_location = location
            subscription.last_location_at = observed_at
            subscription.notifications_sent += 1

    async def sweep_idle(self) -> list[str]:
        """
        Удаляет подписки старше таймаута неактивности (от subscribed_at).

        Returns:
            trip_id удалённых подписок
        """
        now = self._clock()
        removed: list[str] = []
        for subscription in self.snapshot():
            if now - subscription.subscribed_at < self._idle_timeout:
                continue
            async with self._locks.hold(subscription.trip_id):
                # Подписку могли заменить, пока ждали блокировку
                if self._subscriptions.get(subscription.trip_id) is subscription:
                    del self._subscriptions[subscription.trip_id]
                    removed.append(subscription.trip_id)
        return removed
