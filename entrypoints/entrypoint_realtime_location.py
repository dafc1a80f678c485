#!/usr/bin/env python3
"""
Entrypoint для Realtime Location.

Запуск:
    python entrypoints/entrypoint_realtime_location.py

Порт по умолчанию: 8090
"""

import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from livetrack.config import settings


def main() -> None:
    """Запустить Realtime Location."""
    uvicorn.run(
        "livetrack.services.realtime_location.app:app",
        host=settings.deployment.REALTIME_LOCATION_HOST,
        port=settings.deployment.REALTIME_LOCATION_PORT,
        reload=settings.system.DEBUG,
        log_level=settings.system.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
