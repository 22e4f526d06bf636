from .stop import Stop
from .timetable import Timetable
from .transit import RawRoute, Route, StopTime, Time, Transfer, Trip

__all__ = [
    "RawRoute",
    "Route",
    "Stop",
    "StopTime",
    "Time",
    "Timetable",
    "Transfer",
    "Trip",
]
