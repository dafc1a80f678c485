# livetrack/core/tracking/broadcast.py
"""
Движок трансляции позиций водителей пассажирам.

Поток данных:
отчёт водителя -> DriverLocationStore (запись) + RoutingAggregator (ETA)
-> TripSubscriptionRegistry (отправка с троттлингом).

Отчёты одного водителя обрабатываются строго по очереди (блокировка
водителя держится на всём пути от записи до отправки). Провайдеры
маршрутов вызываются вне блокировок хранилища и реестра; под блокировкой
поездки только резервируется окно троттлинга.
"""

from __future__ import annotations

import asyncio
from typing import Any

from livetrack.common.constants import (
    TERMINAL_STATUSES,
    TRACKABLE_STATUSES,
    EtaSource,
    LocationEvent,
    TripStatus,
    TypeMsg,
)
from livetrack.common.exceptions import AccessDenied, InvalidRequest, RoutingUnavailable
from livetrack.common.logger import log_info, log_warning
from livetrack.core.geo.geo_math import distance_meters, estimate_travel_seconds
from livetrack.core.geo.models import Location
from livetrack.core.routing.aggregator import RoutingAggregator
from livetrack.core.routing.models import RouteOptions
from livetrack.core.tracking.collaborators import (
    AccessControl,
    ConnectionHandle,
    LocationPersistence,
    TripDirectory,
)
from livetrack.core.tracking.models import (
    DriverLocationRecord,
    EtaInfo,
    LocationUpdatePayload,
    TripInfo,
    TripSubscription,
)
from livetrack.core.tracking.locks import KeyedLock
from livetrack.core.tracking.store import DriverLocationStore
from livetrack.core.tracking.subscriptions import TripSubscriptionRegistry
from livetrack.core.tracking.zones import ZoneResolver


class LocationBroadcastEngine:
    """
    Приём позиций водителей и рассылка обновлений подписчикам поездок.
    """

    def __init__(
        self,
        store: DriverLocationStore,
        registry: TripSubscriptionRegistry,
        aggregator: RoutingAggregator,
        access_control: AccessControl,
        trip_directory: TripDirectory,
        persistence: LocationPersistence | None = None,
        zone_resolver: ZoneResolver | None = None,
        average_speed_kmh: float = 30.0,
    ) -> None:
        self._store = store
        self._registry = registry
        self._aggregator = aggregator
        self._access = access_control
        self._trips = trip_directory
        self._persistence = persistence
        self._zones = zone_resolver
        self._average_speed_kmh = average_speed_kmh

        # Очередь отчётов по водителю
        self._driver_locks = KeyedLock()

        # Фоновые записи в БД (fire-and-forget)
        self._background: set[asyncio.Task] = set()

        self._total_updates = 0
        self._notifications_sent = 0
        self._notifications_throttled = 0
        self._persistence_failures = 0

    # =========================================================================
    # ПОДПИСКИ
    # =========================================================================

    async def subscribe(
        self,
        trip_id: str,
        rider_id: str,
        connection: ConnectionHandle,
    ) -> bool:
        """
        Подписывает пассажира на обновления поездки.

        Сразу отправляет driver_location_initial, если позиция водителя известна.

        Returns:
            True, если начальная позиция отправлена

        Raises:
            AccessDenied: Нет доступа или поездка в неотслеживаемом статусе
        """
        if not await self._access.validate_rider_trip_access(rider_id, trip_id):
            raise AccessDenied(f"Пассажир {rider_id} не имеет доступа к поездке {trip_id}")

        trip = await self._trips.get_trip_status(trip_id)
        if trip is None or trip.status not in TRACKABLE_STATUSES:
            status = trip.status.value if trip else "unknown"
            raise AccessDenied(f"Поездка {trip_id} не отслеживается (статус {status})")

        subscription = await self._registry.subscribe(trip_id, rider_id, connection)
        await log_info(
            f"Пассажир {rider_id} подписан на поездку {trip_id}",
            type_msg=TypeMsg.DEBUG,
        )

        if trip.driver_id is None:
            return False
        record = self._store.get(trip.driver_id)
        if record is None:
            return False

        payload = await self._build_payload(trip, record)
        return await self._send(subscription, LocationEvent.DRIVER_LOCATION_INITIAL, payload)

    async def unsubscribe(self, trip_id: str) -> bool:
        removed = await self._registry.remove(trip_id)
        if removed is not None:
            await log_info(f"Подписка на поездку {trip_id} удалена", type_msg=TypeMsg.DEBUG)
        return removed is not None

    async def release_connection(self, trip_id: str, connection: ConnectionHandle) -> bool:
        """Соединение закрыто: снимает подписку, если она всё ещё его."""
        removed = await self._registry.remove(trip_id, connection=connection)
        return removed is not None

    async def on_trip_status_changed(self, trip_id: str, status: TripStatus) -> bool:
        """Завершённая или отменённая поездка снимает подписку."""
        if status in TERMINAL_STATUSES:
            return await self.unsubscribe(trip_id)
        return False

    async def sweep_idle_subscriptions(self) -> int:
        removed = await self._registry.sweep_idle()
        if removed:
            await log_info(f"Очистка: удалено неактивных подписок: {len(removed)}")
        return len(removed)

    # =========================================================================
    # ОТЧЁТЫ ВОДИТЕЛЕЙ
    # =========================================================================

    async def on_driver_report(
        self,
        driver_id: str,
        location: Location,
        trip_id: str | None = None,
    ) -> DriverLocationRecord:
        """
        Обрабатывает позицию водителя.

        Raises:
            AccessDenied: Водитель не назначен на поездку trip_id
            InvalidLocation: Координаты вне диапазона
        """
        async with self._driver_locks.hold(driver_id):
            if trip_id is not None:
                if not await self._access.validate_driver_trip_access(driver_id, trip_id):
                    raise AccessDenied(f"Водитель {driver_id} не назначен на поездку {trip_id}")

            record = await self._store.update(driver_id, location, trip_id)
            self._total_updates += 1

            self._schedule_persistence(record)

            if trip_id is not None and trip_id in self._registry:
                await self._notify(trip_id, record)

            return record

    async def _notify(self, trip_id: str, record: DriverLocationRecord) -> None:
        subscription = await self._registry.try_reserve_notification(trip_id, record.updated_at)
        if subscription is None:
            self._notifications_throttled += 1
            return

        trip = await self._trips.get_trip_status(trip_id)
        if trip is not None and trip.status in TERMINAL_STATUSES:
            await self._registry.remove(trip_id, connection=subscription.connection)
            return
        if trip is None:
            trip = TripInfo(trip_id=trip_id, status=TripStatus.ACCEPTED, driver_id=record.driver_id)

        payload = await self._build_payload(trip, record)
        if await self._send(subscription, LocationEvent.DRIVER_LOCATION_UPDATE, payload):
            await self._registry.mark_notified(subscription, record.location, record.updated_at)

    # =========================================================================
    # ETA И СОБЫТИЯ
    # =========================================================================

    async def _build_payload(self, trip: TripInfo, record: DriverLocationRecord) -> dict[str, Any]:
        eta = await self._compute_eta(trip, record.location)

        distance_to_destination = None
        if trip.destination_location is not None:
            distance_to_destination = round(
                distance_meters(record.location, trip.destination_location), 1
            )

        return LocationUpdatePayload(
            trip_id=trip.trip_id,
            driver_id=record.driver_id,
            location=record.location,
            eta=eta,
            distance_to_destination=distance_to_destination,
            timestamp=record.updated_at,
        ).to_message()

    async def _compute_eta(self, trip: TripInfo, location: Location) -> EtaInfo | None:
        """
        ETA до точки подачи (водитель едет к пассажиру) или до пункта
        назначения (поездка идёт). В остальных статусах ETA нет.
        """
        match trip.status:
            case TripStatus.DRIVER_EN_ROUTE:
                target = trip.pickup_location
            case TripStatus.IN_PROGRESS:
                target = trip.destination_location
            case _:
                return None

        if target is None:
            return None

        try:
            eta = await self._aggregator.calculate_eta(
                location,
                target,
                RouteOptions(provider_id=self._aggregator.default_provider),
            )
        except (RoutingUnavailable, InvalidRequest) as e:
            await log_warning(f"ETA для поездки {trip.trip_id} по оценке: {e}")
            return self._estimate_eta(location, target)

        return EtaInfo(
            eta_seconds=eta.duration_seconds,
            eta_minutes=eta.eta_minutes,
            route_distance_meters=eta.distance_meters,
            source=EtaSource.PROVIDER,
            provider=eta.provider_id.value,
        )

    def _estimate_eta(self, location: Location, target: Location) -> EtaInfo:
        """Оценка по прямой при средней скорости, не меньше минуты."""
        distance = distance_meters(location, target)
        seconds = max(60.0, estimate_travel_seconds(distance, self._average_speed_kmh))
        return EtaInfo(
            eta_seconds=round(seconds),
            eta_minutes=max(1, round(seconds / 60)),
            route_distance_meters=round(distance, 1),
            source=EtaSource.ESTIMATE,
        )

    async def _send(
        self,
        subscription: TripSubscription,
        event: LocationEvent,
        payload: dict[str, Any],
    ) -> bool:
        """Отправка подписчику; ошибка отправки закрывает подписку."""
        try:
            await subscription.connection.send_json(event.value, payload)
        except Exception as e:
            await log_warning(
                f"Соединение подписчика поездки {subscription.trip_id} разорвано: {e!r}"
            )
            await self._registry.remove(subscription.trip_id, connection=subscription.connection)
            return False

        self._notifications_sent += 1
        return True

    # =========================================================================
    # ДОЛГОВРЕМЕННАЯ ЗАПИСЬ
    # =========================================================================

    def _schedule_persistence(self, record: DriverLocationRecord) -> None:
        if self._persistence is None:
            return
        task = asyncio.create_task(self._persist(record))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _persist(self, record: DriverLocationRecord) -> None:
        zone = self._zones.resolve(record.location) if self._zones else None
        try:
            await self._persistence.save_driver_position(
                record.driver_id,
                record.location,
                zone,
                record.active_trip_id,
            )
        except Exception as e:
            self._persistence_failures += 1
            await log_warning(f"Не удалось сохранить позицию водителя {record.driver_id}: {e}")

    async def drain(self) -> None:
        """Дожидается фоновых записей (при остановке сервиса)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # =========================================================================
    # ЗАПРОСЫ
    # =========================================================================

    def get_driver_location(self, driver_id: str) -> DriverLocationRecord | None:
        return self._store.get(driver_id)

    def get_all_driver_locations(self) -> dict[str, DriverLocationRecord]:
        return self._store.list_all()

    def get_stats(self) -> dict[str, int]:
        """Получить статистику сервиса."""
        return {
            "total_updates": self._total_updates,
            "unique_drivers": len(self._store),
            "active_subscriptions": len(self._registry),
            "notifications_sent": self._notifications_sent,
            "notifications_throttled": self._notifications_throttled,
            "persistence_failures": self._persistence_failures,
        }
