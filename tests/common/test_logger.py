# tests/common/test_logger.py
"""
Unit тесты для модуля логирования (livetrack/common/logger.py).
"""

import json
import logging
from unittest.mock import MagicMock, Mock, patch

import pytest

from livetrack.common.constants import TypeMsg
from livetrack.common.logger import (
    DEFAULT_LOGGER_NAME,
    ColoredFormatter,
    JsonFormatter,
    _get_caller_info,
    _loggers,
    get_logger,
    log_debug,
    log_error,
    log_info,
    log_warning,
    setup_logging,
)


def make_record(level: int = logging.INFO, msg: str = "Test message") -> logging.LogRecord:
    record = logging.LogRecord(
        name="test_logger",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    record.module = "test_module"
    record.funcName = "test_function"
    return record


class TestJsonFormatter:
    """Тесты для JsonFormatter."""

    def test_format_basic_record(self) -> None:
        data = json.loads(JsonFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["message"] == "Test message"
        assert data["module"] == "test_module"
        assert data["line"] == 10
        assert data["timestamp"].endswith("Z")

    def test_format_with_extra_data(self) -> None:
        record = make_record(logging.WARNING)
        record.extra_data = {"trip_id": "trip-1"}

        data = json.loads(JsonFormatter().format(record))

        assert data["extra"] == {"trip_id": "trip-1"}

    def test_format_with_exception(self) -> None:
        record = make_record(logging.ERROR)
        try:
            raise ValueError("Test exception")
        except ValueError:
            import sys
            record.exc_info = sys.exc_info()

        data = json.loads(JsonFormatter().format(record))

        assert "Test exception" in data["exception"]


class TestColoredFormatter:
    """Тесты для ColoredFormatter."""

    def test_format_basic_record(self) -> None:
        result = ColoredFormatter().format(make_record())

        assert "INFO" in result
        assert "Test message" in result
        assert "\033[" in result

    def test_format_with_caller_info(self) -> None:
        record = make_record(logging.DEBUG)
        record.extra_data = {
            "caller_function": "on_driver_report",
            "caller_module": "livetrack.core.tracking.broadcast",
            "caller_line": 42,
        }

        result = ColoredFormatter().format(record)

        assert "livetrack.core.tracking.broadcast.on_driver_report():42" in result


class TestGetLogger:
    """Тесты для get_logger."""

    def setup_method(self) -> None:
        _loggers.clear()
        for logger in logging.Logger.manager.loggerDict.values():
            if isinstance(logger, logging.Logger):
                logger.handlers.clear()

    def test_get_logger_creates_new_logger(self) -> None:
        logger = get_logger("test_logger")

        assert logger.name == "test_logger"
        assert len(logger.handlers) >= 1
        assert logger.propagate is False

    def test_get_logger_returns_cached_logger(self) -> None:
        assert get_logger("test_logger") is get_logger("test_logger")

    @patch("livetrack.config.settings")
    def test_get_logger_uses_settings(self, mock_settings: Mock) -> None:
        mock_settings.logging.LOG_LEVEL = "WARNING"
        mock_settings.logging.LOG_FORMAT = "json"
        mock_settings.logging.LOG_TO_FILE = False
        mock_settings.logging.LOG_FILE_PATH = "logs/test.log"
        mock_settings.logging.LOG_MAX_BYTES = 10485760
        mock_settings.logging.LOG_BACKUP_COUNT = 5

        logger = get_logger("test_with_settings")

        assert logger.level == logging.WARNING
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)

    def test_get_logger_handles_missing_settings(self) -> None:
        with patch.dict("sys.modules", {"livetrack.config": None}):
            logger = get_logger("test_no_settings")

        assert logger.level == logging.DEBUG


class TestSetupLogging:
    """Тесты для setup_logging."""

    def test_setup_logging_sets_third_party_levels(self) -> None:
        with patch("livetrack.common.logger._LOGGING_INITIALIZED", False):
            _loggers.clear()
            setup_logging()

        assert DEFAULT_LOGGER_NAME in _loggers
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("asyncpg").level == logging.WARNING


class TestGetCallerInfo:
    """Тесты для _get_caller_info."""

    def test_contains_caller_data(self) -> None:
        def caller():
            return _get_caller_info()

        info = caller()

        assert info["caller_function"] == "caller"
        assert info["caller_module"] == __name__


class TestLogFunctions:
    """Тесты для асинхронных функций логирования."""

    def setup_method(self) -> None:
        _loggers.clear()

    @pytest.mark.asyncio
    async def test_log_info_records_caller(self) -> None:
        with patch.object(logging.Logger, "info") as mock_info:
            await log_info("Test message", extra={"trip_id": "trip-1"})

        args, kwargs = mock_info.call_args
        assert args[0] == "Test message"
        extra_data = kwargs["extra"]["extra_data"]
        assert extra_data["trip_id"] == "trip-1"
        assert extra_data["caller_function"] == "test_log_info_records_caller"

    @pytest.mark.asyncio
    async def test_log_info_with_type_msg(self) -> None:
        with patch.object(logging.Logger, "debug") as mock_debug:
            await log_info("Debug message", type_msg=TypeMsg.DEBUG)
            mock_debug.assert_called_once()

        with patch.object(logging.Logger, "warning") as mock_warning:
            await log_info("Warning message", type_msg=TypeMsg.WARNING)
            mock_warning.assert_called_once()

        with patch.object(logging.Logger, "critical") as mock_critical:
            await log_info("Critical message", type_msg=TypeMsg.CRITICAL)
            mock_critical.assert_called_once()

    @pytest.mark.asyncio
    async def test_shortcuts(self) -> None:
        with patch.object(logging.Logger, "debug") as mock_debug:
            await log_debug("Debug message")
            mock_debug.assert_called_once()

        with patch.object(logging.Logger, "warning") as mock_warning:
            await log_warning("Warning message")
            mock_warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_log_error_with_exc_info(self) -> None:
        with patch.object(logging.Logger, "error") as mock_error:
            await log_error("Error message", exc_info=True)

        assert mock_error.call_args[1].get("exc_info") is True

    @pytest.mark.asyncio
    async def test_custom_logger_name(self) -> None:
        with patch("livetrack.common.logger.get_logger") as mock_get_logger:
            mock_logger = MagicMock()
            mock_get_logger.return_value = mock_logger

            await log_info("Test message", logger_name="custom_logger")

        mock_get_logger.assert_called_once_with("custom_logger")
        mock_logger.info.assert_called_once()
