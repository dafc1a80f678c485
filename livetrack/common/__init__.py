# livetrack/common/__init__.py
"""
Общие утилиты, константы, ошибки и логгер.
"""

from livetrack.common.logger import get_logger, log_info, log_error, log_warning, log_debug
from livetrack.common.constants import TypeMsg

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "TypeMsg",
]
