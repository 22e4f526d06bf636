from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable

from src.domain.exceptions import MalformedFeedError

from .stop import Stop
from .transit import RawRoute, Route, Transfer, Trip


@dataclass(frozen=True, slots=True)
class Timetable:
    """Read-only aggregate over stops, pattern routes, trips and footpaths.

    Built once; searches only read it, so one instance can serve any
    number of concurrent queries.
    """

    stops: tuple[Stop, ...]
    routes: tuple[Route, ...]
    trips: tuple[Trip, ...]
    transfers: tuple[Transfer, ...] = ()

    _stops_by_id: dict[str, Stop] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )
    _routes_by_stop: dict[Stop, tuple[Route, ...]] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )
    _transfers_by_stop: dict[Stop, tuple[Transfer, ...]] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        stops_by_id: dict[str, Stop] = {}
        for stop in self.stops:
            if stop.id in stops_by_id:
                raise MalformedFeedError(f"Duplicate stop id: {stop.id!r}")
            stops_by_id[stop.id] = stop

        routes_by_stop: dict[Stop, list[Route]] = defaultdict(list)
        for route in self.routes:
            for trip in route.trips:
                for stop in trip.stops():
                    if stop.id not in stops_by_id:
                        raise MalformedFeedError(
                            f"Trip {trip.id!r} references unknown stop {stop.id!r}"
                        )
            for stop in dict.fromkeys(route.stops()):
                routes_by_stop[stop].append(route)

        transfers_by_stop: dict[Stop, list[Transfer]] = defaultdict(list)
        for transfer in self.transfers:
            for stop in (transfer.from_stop, transfer.to_stop):
                if stop.id not in stops_by_id:
                    raise MalformedFeedError(
                        f"Transfer references unknown stop {stop.id!r}"
                    )
            transfers_by_stop[transfer.from_stop].append(transfer)

        object.__setattr__(self, "_stops_by_id", stops_by_id)
        object.__setattr__(
            self, "_routes_by_stop", {s: tuple(r) for s, r in routes_by_stop.items()}
        )
        object.__setattr__(
            self,
            "_transfers_by_stop",
            {s: tuple(t) for s, t in transfers_by_stop.items()},
        )

    @classmethod
    def from_raw_routes(
        cls,
        *,
        stops: Iterable[Stop],
        raw_routes: Iterable[RawRoute],
        transfers: Iterable[Transfer] = (),
    ) -> "Timetable":
        """Split every raw route into stop-pattern routes and build the aggregate."""

        routes: list[Route] = []
        for raw in raw_routes:
            routes.extend(raw.split())
        trips = tuple(trip for route in routes for trip in route.trips)
        return cls(
            stops=tuple(stops),
            routes=tuple(routes),
            trips=trips,
            transfers=tuple(transfers),
        )

    def stop(self, stop_id: str) -> Stop | None:
        return self._stops_by_id.get(stop_id)

    def routes_serving(self, stop: Stop) -> tuple[Route, ...]:
        """Routes whose stop pattern contains ``stop``."""

        return self._routes_by_stop.get(stop, ())

    def transfers_from(self, stop: Stop) -> tuple[Transfer, ...]:
        return self._transfers_by_stop.get(stop, ())
