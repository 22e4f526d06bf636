from __future__ import annotations

import csv
import logging
import os
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from src.app.ports.output import ITimetableRepository
from src.domain.exceptions import MalformedFeedError
from src.domain.models import RawRoute, Stop, StopTime, Timetable, Transfer, Trip
from src.domain.models.gtfs import (
    GtfsFeed,
    GtfsRoute,
    GtfsStop,
    GtfsStopTime,
    GtfsTransfer,
    GtfsTrip,
)

logger = logging.getLogger(__name__)

# transfers.txt transfer_type: 3 = transfers are not possible between the stops.
_TRANSFER_NOT_POSSIBLE = "3"


def _parse_gtfs_time_to_seconds(raw: str) -> int:
    # GTFS time can be HH:MM:SS with HH possibly > 24.
    try:
        hh, mm, ss = raw.strip().split(":")
        return int(hh) * 3600 + int(mm) * 60 + int(ss)
    except (AttributeError, ValueError) as exc:
        raise MalformedFeedError(f"Invalid GTFS time: {raw!r}") from exc


def _field(row: dict[str, str | None], name: str) -> str:
    return (row.get(name) or "").strip()


def build_timetable(feed: GtfsFeed) -> Timetable:
    """Turn typed feed rows into the grouped, searchable timetable.

    Every reference is resolved here; a dangling one raises
    ``MalformedFeedError`` before any Timetable exists.
    """

    stops_by_id = {s.stop_id: Stop(id=s.stop_id, name=s.stop_name) for s in feed.stops}
    routes_by_id = {r.route_id: r for r in feed.routes}

    stop_times_by_trip: dict[str, list[GtfsStopTime]] = defaultdict(list)
    for st in feed.stop_times:
        stop_times_by_trip[st.trip_id].append(st)

    trips_by_route: dict[str, list[Trip]] = defaultdict(list)
    for gtfs_trip in feed.trips:
        if gtfs_trip.route_id not in routes_by_id:
            raise MalformedFeedError(
                f"Trip {gtfs_trip.trip_id!r} references unknown route "
                f"{gtfs_trip.route_id!r}"
            )

        entries = sorted(
            stop_times_by_trip.pop(gtfs_trip.trip_id, []),
            key=lambda st: st.stop_sequence,
        )
        if not entries:
            logger.warning("Skipping trip %s without stop times", gtfs_trip.trip_id)
            continue

        stop_times: list[StopTime] = []
        for st in entries:
            stop = stops_by_id.get(st.stop_id)
            if stop is None:
                raise MalformedFeedError(
                    f"Trip {gtfs_trip.trip_id!r} references unknown stop {st.stop_id!r}"
                )
            stop_times.append(
                StopTime(
                    stop=stop,
                    arrival_time=st.arrival_time_s,
                    departure_time=st.departure_time_s,
                )
            )

        try:
            trip = Trip(id=gtfs_trip.trip_id, stop_times=tuple(stop_times))
        except ValueError as exc:
            raise MalformedFeedError(str(exc)) from exc
        trips_by_route[gtfs_trip.route_id].append(trip)

    if stop_times_by_trip:
        orphan = next(iter(stop_times_by_trip))
        raise MalformedFeedError(f"Stop times reference unknown trip {orphan!r}")

    raw_routes = [
        RawRoute(
            id=route.route_id,
            name=route.short_name or route.long_name or route.route_id,
            trips=tuple(trips_by_route[route.route_id]),
        )
        for route in feed.routes
        if trips_by_route.get(route.route_id)
    ]

    transfers: list[Transfer] = []
    for t in feed.transfers:
        from_stop = stops_by_id.get(t.from_stop_id)
        to_stop = stops_by_id.get(t.to_stop_id)
        if from_stop is None or to_stop is None:
            missing = t.from_stop_id if from_stop is None else t.to_stop_id
            raise MalformedFeedError(f"Transfer references unknown stop {missing!r}")
        try:
            transfers.append(
                Transfer(from_stop=from_stop, to_stop=to_stop, duration_s=t.min_transfer_time_s)
            )
        except ValueError as exc:
            raise MalformedFeedError(str(exc)) from exc

    return Timetable.from_raw_routes(
        stops=stops_by_id.values(), raw_routes=raw_routes, transfers=transfers
    )


@dataclass(slots=True)
class LocalGtfsRepository(ITimetableRepository):
    """Loads a GTFS feed from a directory of .txt files.

    Env vars:
      - GTFS_PATH: path to directory containing stops.txt, routes.txt, trips.txt,
        stop_times.txt and (optionally) transfers.txt
    """

    base_path: str | Path | None = None

    def _base(self) -> Path:
        value = self.base_path or os.getenv("GTFS_PATH") or "data/gtfs"
        return Path(value)

    def _rows(self, name: str, *, required: bool = True) -> Iterator[dict[str, str | None]]:
        path = self._base() / name
        if not path.exists():
            if required:
                raise MalformedFeedError(f"Missing GTFS file: {path}")
            return
        with path.open("r", encoding="utf-8-sig", newline="") as fp:
            yield from csv.DictReader(fp)

    def read_feed(self) -> GtfsFeed:
        stops: list[GtfsStop] = []
        for row in self._rows("stops.txt"):
            stop_id = _field(row, "stop_id")
            if not stop_id:
                continue
            stops.append(GtfsStop(stop_id=stop_id, stop_name=_field(row, "stop_name") or stop_id))

        routes: list[GtfsRoute] = []
        for row in self._rows("routes.txt"):
            route_id = _field(row, "route_id")
            if not route_id:
                continue
            routes.append(
                GtfsRoute(
                    route_id=route_id,
                    short_name=_field(row, "route_short_name") or None,
                    long_name=_field(row, "route_long_name") or None,
                )
            )

        trips: list[GtfsTrip] = []
        for row in self._rows("trips.txt"):
            trip_id = _field(row, "trip_id")
            if not trip_id:
                continue
            trips.append(
                GtfsTrip(
                    trip_id=trip_id,
                    route_id=_field(row, "route_id"),
                    short_name=_field(row, "trip_short_name") or None,
                )
            )

        stop_times: list[GtfsStopTime] = []
        for row in self._rows("stop_times.txt"):
            trip_id = _field(row, "trip_id")
            stop_id = _field(row, "stop_id")
            if not trip_id or not stop_id:
                continue
            try:
                seq = int(row.get("stop_sequence") or 0)
            except ValueError as exc:
                raise MalformedFeedError(
                    f"Invalid stop_sequence for trip {trip_id!r}: {row.get('stop_sequence')!r}"
                ) from exc
            stop_times.append(
                GtfsStopTime(
                    trip_id=trip_id,
                    stop_id=stop_id,
                    stop_sequence=seq,
                    arrival_time_s=_parse_gtfs_time_to_seconds(_field(row, "arrival_time")),
                    departure_time_s=_parse_gtfs_time_to_seconds(
                        _field(row, "departure_time")
                    ),
                )
            )

        transfers: list[GtfsTransfer] = []
        for row in self._rows("transfers.txt", required=False):
            from_stop_id = _field(row, "from_stop_id")
            to_stop_id = _field(row, "to_stop_id")
            if not from_stop_id or not to_stop_id:
                continue
            if _field(row, "transfer_type") == _TRANSFER_NOT_POSSIBLE:
                continue
            try:
                min_time = int(_field(row, "min_transfer_time") or 0)
            except ValueError as exc:
                raise MalformedFeedError(
                    f"Invalid min_transfer_time {from_stop_id!r} -> {to_stop_id!r}"
                ) from exc
            transfers.append(
                GtfsTransfer(
                    from_stop_id=from_stop_id,
                    to_stop_id=to_stop_id,
                    min_transfer_time_s=min_time,
                )
            )

        return GtfsFeed(
            stops=tuple(stops),
            routes=tuple(routes),
            trips=tuple(trips),
            stop_times=tuple(stop_times),
            transfers=tuple(transfers),
        )

    def load_timetable(self) -> Timetable:
        base = self._base()
        timetable = build_timetable(self.read_feed())
        logger.info(
            "Loaded GTFS timetable from %s: %d stops, %d routes",
            base,
            len(timetable.stops),
            len(timetable.routes),
        )
        return timetable
