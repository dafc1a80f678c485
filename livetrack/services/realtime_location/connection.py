# livetrack/services/realtime_location/connection.py
"""
WebSocket соединение подписчика.
"""

from __future__ import annotations

from typing import Any

from fastapi import WebSocket


class WebSocketConnection:
    """
    Реализация ConnectionHandle поверх FastAPI WebSocket.

    Формат сообщения: {"type": <событие>, "data": <payload>}.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket

    async def send_json(self, event: str, payload: dict[str, Any]) -> None:
        await self.websocket.send_json({"type": event, "data": payload})

    async def send_error(self, detail: str) -> None:
        await self.websocket.send_json({"type": "error", "detail": detail})

    async def close(self, code: int = 1000) -> None:
        await self.websocket.close(code=code)
