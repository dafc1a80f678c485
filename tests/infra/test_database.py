# tests/infra/test_database.py
"""
Тесты для менеджера базы данных и журнала позиций.
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from livetrack.common.exceptions import PersistenceFailure
from livetrack.config.loader import DatabaseSettings
from livetrack.core.geo.models import Location
from livetrack.infra.database import DatabaseManager, retry_on_connection_error
from livetrack.infra.location_repository import INSERT_POSITION_SQL, PostgresLocationRepository


class TestRetryOnConnectionError:
    """Тесты для декоратора retry_on_connection_error."""

    @pytest.mark.asyncio
    async def test_retry_then_success(self) -> None:
        call_count = 0

        @retry_on_connection_error(max_attempts=3, delay=0.01)
        async def failing_then_success():
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise ConnectionRefusedError("Connection refused")
            return "success"

        assert await failing_then_success() == "success"
        assert call_count == 2

    @pytest.mark.asyncio
    async def test_max_attempts_exceeded(self) -> None:
        @retry_on_connection_error(max_attempts=2, delay=0.01)
        async def always_failing():
            raise ConnectionRefusedError("Connection refused")

        with pytest.raises(ConnectionRefusedError):
            await always_failing()

    @pytest.mark.asyncio
    async def test_other_errors_not_retried(self) -> None:
        call_count = 0

        @retry_on_connection_error(max_attempts=3, delay=0.01)
        async def raises_value_error():
            nonlocal call_count
            call_count += 1
            raise ValueError("Not a connection error")

        with pytest.raises(ValueError):
            await raises_value_error()
        assert call_count == 1


class TestDatabaseManager:
    """Тесты для DatabaseManager."""

    @pytest.fixture
    def db_manager(self) -> DatabaseManager:
        # Сбрасываем синглтон для каждого теста
        DatabaseManager._instance = None
        DatabaseManager._pool = None
        return DatabaseManager()

    @staticmethod
    def attach_connection(db_manager: DatabaseManager) -> AsyncMock:
        conn = AsyncMock()
        pool = MagicMock()
        pool.acquire.return_value.__aenter__.return_value = conn
        pool.close = AsyncMock()
        db_manager._pool = pool
        return conn

    def test_pool_not_initialized(self, db_manager: DatabaseManager) -> None:
        with pytest.raises(RuntimeError, match="Пул соединений не инициализирован"):
            _ = db_manager.pool
        assert db_manager.is_connected is False

    @pytest.mark.asyncio
    async def test_connect(self, db_manager: DatabaseManager) -> None:
        config = DatabaseSettings(
            DB_HOST="db.local",
            DB_NAME="tracking",
            DB_USER="u",
            DB_PASSWORD="p",
            DB_MIN_POOL_SIZE=1,
            DB_MAX_POOL_SIZE=2,
        )
        pool = MagicMock()
        with patch("asyncpg.create_pool", AsyncMock(return_value=pool)) as create_pool:
            await db_manager.connect(config)
            await db_manager.connect(config)

        create_pool.assert_awaited_once_with(
            dsn="postgresql://u:p@db.local:5432/tracking", min_size=1, max_size=2, command_timeout=10
        )
        assert db_manager.is_connected is True

    @pytest.mark.asyncio
    async def test_connect_retried(self, db_manager: DatabaseManager) -> None:
        """Обрыв при создании пула повторяется."""
        create_pool = AsyncMock(side_effect=[ConnectionRefusedError("refused"), MagicMock()])
        with patch("asyncpg.create_pool", create_pool), patch("asyncio.sleep", AsyncMock()):
            await db_manager.connect(DatabaseSettings(DB_PASSWORD="p"))

        assert create_pool.await_count == 2
        assert db_manager.is_connected is True

    @pytest.mark.asyncio
    async def test_disconnect(self, db_manager: DatabaseManager) -> None:
        self.attach_connection(db_manager)
        pool = db_manager._pool

        await db_manager.disconnect()

        pool.close.assert_awaited_once()
        assert db_manager.is_connected is False

    @pytest.mark.asyncio
    async def test_execute(self, db_manager: DatabaseManager) -> None:
        conn = self.attach_connection(db_manager)
        conn.execute.return_value = "INSERT 0 1"

        assert await db_manager.execute("INSERT ...", 1, 2) == "INSERT 0 1"
        conn.execute.assert_awaited_once_with("INSERT ...", 1, 2)

    @pytest.mark.asyncio
    async def test_health_check(self, db_manager: DatabaseManager) -> None:
        conn = self.attach_connection(db_manager)
        conn.fetchval.return_value = 1
        assert await db_manager.health_check() is True

        conn.fetchval.side_effect = RuntimeError("down")
        assert await db_manager.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_not_connected(self, db_manager: DatabaseManager) -> None:
        assert await db_manager.health_check() is False


class TestPostgresLocationRepository:
    """Тесты записи позиций водителей."""

    @pytest.mark.asyncio
    async def test_save_driver_position(self) -> None:
        db = MagicMock()
        db.execute = AsyncMock()
        captured = datetime(2024, 1, 1, tzinfo=timezone.utc)
        location = Location(latitude=4.05, longitude=9.76, heading=90, speed=12.5, captured_at=captured)

        await PostgresLocationRepository(db).save_driver_position("driver-1", location, "city_centre", "trip-1")

        db.execute.assert_awaited_once_with(
            INSERT_POSITION_SQL,
            "driver-1", "trip-1", 4.05, 9.76, 90, 12.5, None, "city_centre", captured,
        )

    @pytest.mark.asyncio
    async def test_failure_wrapped(self) -> None:
        db = MagicMock()
        db.execute = AsyncMock(side_effect=OSError("connection lost"))

        with pytest.raises(PersistenceFailure):
            await PostgresLocationRepository(db).save_driver_position(
                "driver-1", Location(latitude=0, longitude=0), None, None
            )
