# livetrack/services/__init__.py
"""
HTTP / WebSocket сервисы.

- realtime_location: приём позиций водителей и подписки пассажиров
- routing: маршруты и ETA
"""
