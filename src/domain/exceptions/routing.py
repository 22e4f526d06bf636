from __future__ import annotations


class RoutingError(Exception):
    """Base exception for route calculation failures."""


class NoPathFound(RoutingError):
    """Raised when no feasible path exists for the given request."""


class UnknownStop(RoutingError):
    """Raised when a query references a stop id the timetable does not know."""

    def __init__(self, stop_id: str) -> None:
        super().__init__(f"Unknown stop: {stop_id!r}")
        self.stop_id = stop_id


class InconsistentTimetable(RoutingError):
    """The timetable violates an invariant the search relies on.

    Raised mid-search; the search is aborted rather than returning
    arrivals computed from a corrupted graph.
    """


class StopNotOnRoute(InconsistentTimetable):
    def __init__(self, stop_id: str, route_id: str) -> None:
        super().__init__(f"No such stop {stop_id!r} on route {route_id!r}")
        self.stop_id = stop_id
        self.route_id = route_id


class StopNotOnTrip(InconsistentTimetable):
    def __init__(self, stop_id: str, trip_id: str) -> None:
        super().__init__(f"No such stop {stop_id!r} on trip {trip_id!r}")
        self.stop_id = stop_id
        self.trip_id = trip_id


class UnrelatedQueueItems(InconsistentTimetable):
    def __init__(self, route_id: str, other_route_id: str) -> None:
        super().__init__(
            f"Queue items are unrelated: route {route_id!r} != {other_route_id!r}"
        )
        self.route_id = route_id
        self.other_route_id = other_route_id


class MalformedFeedError(ValueError):
    """Raised by loaders when feed records reference missing or invalid data."""
