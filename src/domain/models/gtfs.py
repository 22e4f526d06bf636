from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GtfsStop:
    stop_id: str
    stop_name: str


@dataclass(frozen=True, slots=True)
class GtfsRoute:
    route_id: str
    short_name: str | None = None
    long_name: str | None = None


@dataclass(frozen=True, slots=True)
class GtfsTrip:
    trip_id: str
    route_id: str
    short_name: str | None = None


@dataclass(frozen=True, slots=True)
class GtfsStopTime:
    """One stop_times.txt row.

    Times are seconds since service day midnight (GTFS time semantics; may exceed 24h).
    """

    trip_id: str
    stop_id: str
    stop_sequence: int
    arrival_time_s: int
    departure_time_s: int


@dataclass(frozen=True, slots=True)
class GtfsTransfer:
    from_stop_id: str
    to_stop_id: str
    min_transfer_time_s: int


@dataclass(frozen=True, slots=True)
class GtfsFeed:
    """Typed rows of the GTFS files needed to build a timetable, before grouping."""

    stops: tuple[GtfsStop, ...]
    routes: tuple[GtfsRoute, ...]
    trips: tuple[GtfsTrip, ...]
    stop_times: tuple[GtfsStopTime, ...]
    transfers: tuple[GtfsTransfer, ...] = ()
