# livetrack/services/realtime_location/__init__.py
"""
Realtime Location: приём позиций водителей и трансляция пассажирам.
"""
