# livetrack/services/routing/__init__.py
"""
Routing: маршруты и ETA через внешних провайдеров.
"""
