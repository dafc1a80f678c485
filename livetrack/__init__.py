"""
livetrack: отслеживание водителей в реальном времени и агрегация маршрутов.
"""

__version__ = "1.0.0"
