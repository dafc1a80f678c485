# livetrack/worker/__init__.py
"""
Фоновые воркеры.
"""

from livetrack.worker.base import PeriodicWorker
from livetrack.worker.maintenance import IdleSubscriptionSweeper, RouteCachePurger

__all__ = [
    "IdleSubscriptionSweeper",
    "PeriodicWorker",
    "RouteCachePurger",
]
