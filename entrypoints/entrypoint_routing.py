#!/usr/bin/env python3
"""
Entrypoint для Routing.

Запуск:
    python entrypoints/entrypoint_routing.py

Порт по умолчанию: 8092
"""

import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from livetrack.config import settings


def main() -> None:
    """Запустить Routing."""
    uvicorn.run(
        "livetrack.services.routing.app:app",
        host=settings.deployment.ROUTING_SERVICE_HOST,
        port=settings.deployment.ROUTING_SERVICE_PORT,
        reload=settings.system.DEBUG,
        log_level=settings.system.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
