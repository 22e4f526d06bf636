from .routing import (
    InconsistentTimetable,
    MalformedFeedError,
    NoPathFound,
    RoutingError,
    StopNotOnRoute,
    StopNotOnTrip,
    UnknownStop,
    UnrelatedQueueItems,
)

__all__ = [
    "InconsistentTimetable",
    "MalformedFeedError",
    "NoPathFound",
    "RoutingError",
    "StopNotOnRoute",
    "StopNotOnTrip",
    "UnknownStop",
    "UnrelatedQueueItems",
]
