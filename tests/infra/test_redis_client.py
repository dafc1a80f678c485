# tests/infra/test_redis_client.py
"""
Тесты для клиента Redis.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import BaseModel

from livetrack.infra.redis_client import RedisClient, get_redis


class SampleModel(BaseModel):
    """Тестовая Pydantic модель."""
    id: int
    name: str


class TestRedisClient:
    """Тесты для RedisClient."""

    @pytest.fixture
    def redis_client(self) -> RedisClient:
        """Создаёт экземпляр RedisClient для тестов."""
        # Сбрасываем синглтон для каждого теста
        RedisClient._instance = None
        RedisClient._client = None
        return RedisClient()

    def test_singleton(self) -> None:
        """Проверяет паттерн Singleton."""
        RedisClient._instance = None
        assert RedisClient() is get_redis()

    def test_client_not_initialized(self, redis_client: RedisClient) -> None:
        with pytest.raises(RuntimeError, match="Redis клиент не инициализирован"):
            _ = redis_client.client
        assert redis_client.is_connected is False

    def test_make_key(self, redis_client: RedisClient) -> None:
        assert redis_client._make_key("route:osrm") == "livetrack:route:osrm"

    @pytest.mark.asyncio
    async def test_connect(self, redis_client: RedisClient) -> None:
        """Подключение с явным URL и namespace."""
        mock_redis = AsyncMock()
        mock_redis.ping = AsyncMock(return_value=True)

        with patch("redis.asyncio.from_url", return_value=mock_redis) as from_url:
            await redis_client.connect(url="redis://localhost:6379/0", max_connections=10, namespace="test")

        from_url.assert_called_once_with(
            "redis://localhost:6379/0", max_connections=10, decode_responses=True
        )
        mock_redis.ping.assert_awaited_once()
        assert redis_client.is_connected is True
        assert redis_client._make_key("k") == "test:k"

    @pytest.mark.asyncio
    async def test_connect_already_connected(self, redis_client: RedisClient) -> None:
        redis_client._client = AsyncMock()
        with patch("redis.asyncio.from_url") as from_url:
            await redis_client.connect(url="redis://localhost:6379/0")
        from_url.assert_not_called()

    @pytest.mark.asyncio
    async def test_disconnect(self, redis_client: RedisClient) -> None:
        mock_redis = AsyncMock()
        redis_client._client = mock_redis

        await redis_client.disconnect()

        mock_redis.aclose.assert_awaited_once()
        assert redis_client._client is None

    @pytest.mark.asyncio
    async def test_set_with_ttl(self, redis_client: RedisClient) -> None:
        mock_redis = AsyncMock()
        mock_redis.set.return_value = True
        redis_client._client = mock_redis

        assert await redis_client.set("key", "value", ttl=60) is True
        mock_redis.set.assert_awaited_once_with("livetrack:key", "value", ex=60)

    @pytest.mark.asyncio
    async def test_delete_pattern(self, redis_client: RedisClient) -> None:
        """Удаление по шаблону через SCAN."""
        async def scan_iter(match: str):
            assert match == "livetrack:route:*"
            for key in ("livetrack:route:a", "livetrack:route:b"):
                yield key

        mock_redis = MagicMock()
        mock_redis.scan_iter = scan_iter
        mock_redis.delete = AsyncMock(return_value=1)
        redis_client._client = mock_redis

        assert await redis_client.delete_pattern("route:*") == 2
        assert mock_redis.delete.await_count == 2

    @pytest.mark.asyncio
    async def test_model_round_trip(self, redis_client: RedisClient) -> None:
        mock_redis = AsyncMock()
        redis_client._client = mock_redis
        model = SampleModel(id=1, name="route")

        await redis_client.set_model("sample", model, ttl=10)
        stored = mock_redis.set.await_args.args[1]
        mock_redis.get.return_value = stored

        assert await redis_client.get_model("sample", SampleModel) == model

    @pytest.mark.asyncio
    async def test_get_model_missing(self, redis_client: RedisClient) -> None:
        mock_redis = AsyncMock()
        mock_redis.get.return_value = None
        redis_client._client = mock_redis

        assert await redis_client.get_model("sample", SampleModel) is None

    @pytest.mark.asyncio
    async def test_get_model_corrupted(self, redis_client: RedisClient) -> None:
        """Повреждённое значение считается отсутствующим."""
        mock_redis = AsyncMock()
        mock_redis.get.return_value = '{"id": "not-a-number"}'
        redis_client._client = mock_redis

        assert await redis_client.get_model("sample", SampleModel) is None

    @pytest.mark.asyncio
    async def test_health_check(self, redis_client: RedisClient) -> None:
        assert await redis_client.health_check() is False

        mock_redis = AsyncMock()
        mock_redis.ping.return_value = True
        redis_client._client = mock_redis
        assert await redis_client.health_check() is True

        mock_redis.ping.side_effect = ConnectionError("down")
        assert await redis_client.health_check() is False
