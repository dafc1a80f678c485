# livetrack/infra/database.py
"""
Пул соединений PostgreSQL для журнала позиций водителей.

Журнал пишется в фоне, поэтому обрыв соединения повторяется здесь,
а итоговая ошибка уходит вызывающему (репозиторий превращает её
в PersistenceFailure).
"""

from __future__ import annotations

import asyncio
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, TypeVar

import asyncpg
from asyncpg import Pool

from livetrack.common.constants import TypeMsg
from livetrack.common.logger import log_error, log_info, log_warning

if TYPE_CHECKING:
    from livetrack.config.loader import DatabaseSettings

T = TypeVar("T")

RETRYABLE_ERRORS = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    OSError,
)


def retry_on_connection_error(
    max_attempts: int = 3,
    delay: float = 1.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Повторяет корутину при обрыве соединения с PostgreSQL.

    Args:
        max_attempts: Всего попыток, включая первую
        delay: Пауза перед второй попыткой (секунды), дальше растёт линейно
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except RETRYABLE_ERRORS as e:
                    if attempt >= max_attempts:
                        await log_error(
                            f"PostgreSQL недоступен после {max_attempts} попыток ({func.__name__}): {e}"
                        )
                        raise
                    await log_warning(
                        f"Обрыв соединения с PostgreSQL ({func.__name__}, "
                        f"попытка {attempt}/{max_attempts}): {e}"
                    )
                    await asyncio.sleep(delay * attempt)
                    attempt += 1

        return wrapper  # type: ignore

    return decorator


class DatabaseManager:
    """Пул asyncpg, один на процесс (Singleton)."""

    _instance: DatabaseManager | None = None
    _pool: Pool | None = None

    def __new__(cls) -> DatabaseManager:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._pool = None

    @property
    def pool(self) -> Pool:
        if self._pool is None:
            raise RuntimeError("Пул соединений не инициализирован. Вызовите connect() сначала.")
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @retry_on_connection_error()
    async def connect(self, config: "DatabaseSettings | None" = None) -> None:
        """
        Создаёт пул соединений.

        Args:
            config: Секция database настроек (по умолчанию из конфига приложения)
        """
        if self._pool is not None:
            return

        if config is None:
            from livetrack.config import settings
            config = settings.database

        await log_info(
            f"Подключение к PostgreSQL {config.DB_HOST}:{config.DB_PORT}/{config.DB_NAME}",
            type_msg=TypeMsg.INFO,
        )
        self._pool = await asyncpg.create_pool(
            dsn=config.dsn,
            min_size=config.DB_MIN_POOL_SIZE,
            max_size=config.DB_MAX_POOL_SIZE,
            command_timeout=config.DB_COMMAND_TIMEOUT,
        )

    async def disconnect(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            await log_info("Соединение с PostgreSQL закрыто", type_msg=TypeMsg.INFO)

    @retry_on_connection_error()
    async def execute(self, query: str, *args: Any) -> str:
        """Запрос без возврата данных (INSERT в журнал)."""
        async with self.pool.acquire() as conn:
            return await conn.execute(query, *args)

    async def health_check(self) -> bool:
        """SELECT 1 без повторов; False, если пул не создан или БД не отвечает."""
        if self._pool is None:
            return False
        try:
            async with self._pool.acquire() as conn:
                return await conn.fetchval("SELECT 1") == 1
        except Exception as e:
            await log_warning(f"PostgreSQL не отвечает: {e}")
            return False


def get_db() -> DatabaseManager:
    return DatabaseManager()
