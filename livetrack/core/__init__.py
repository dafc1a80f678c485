# livetrack/core/__init__.py
"""
Ядро: геометрия, маршрутизация, трекинг водителей.
"""
