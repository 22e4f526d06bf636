from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from src.domain.exceptions import StopNotOnRoute, StopNotOnTrip

from .stop import Stop

# Times are integer seconds since service day midnight (may exceed 86400).
Time = int


def _escape_id(stop_id: str) -> str:
    return stop_id.replace("\\", "\\\\").replace("_", "\\_")


@dataclass(frozen=True, slots=True)
class StopTime:
    stop: Stop
    arrival_time: Time
    departure_time: Time

    def __post_init__(self) -> None:
        if self.arrival_time > self.departure_time:
            raise ValueError(
                f"Arrival after departure at stop {self.stop.id!r}: "
                f"{self.arrival_time} > {self.departure_time}"
            )


@dataclass(frozen=True, slots=True)
class Trip:
    """One vehicle run: stop times in visit order.

    Equality and hashing use the trip id only.
    """

    id: str
    stop_times: tuple[StopTime, ...] = field(compare=False)
    _positions: dict[Stop, int] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        if not self.stop_times:
            raise ValueError(f"Trip {self.id!r} has no stop times")

        for prev, nxt in zip(self.stop_times, self.stop_times[1:]):
            if prev.departure_time > nxt.arrival_time:
                raise ValueError(
                    f"Trip {self.id!r} goes back in time between "
                    f"{prev.stop.id!r} and {nxt.stop.id!r}"
                )

        positions: dict[Stop, int] = {}
        for i, st in enumerate(self.stop_times):
            # A loop trip visits a stop twice; lookups resolve to the first visit.
            positions.setdefault(st.stop, i)
        object.__setattr__(self, "_positions", positions)

    @property
    def group_id(self) -> str:
        """Stop pattern fingerprint: the visited stop ids, in order.

        Each id is prefixed with ``_``; backslashes and underscores inside
        ids are backslash-escaped so distinct patterns never share a
        fingerprint.
        """

        return "".join(f"_{_escape_id(st.stop.id)}" for st in self.stop_times)

    def stops(self) -> tuple[Stop, ...]:
        return tuple(st.stop for st in self.stop_times)

    def call_at(self, index: int, stop: Stop) -> StopTime:
        """Stop time at pattern position ``index``, which must visit ``stop``."""

        if index >= len(self.stop_times) or self.stop_times[index].stop != stop:
            raise StopNotOnTrip(stop.id, self.id)
        return self.stop_times[index]

    def stop_time(self, stop: Stop) -> StopTime:
        i = self._positions.get(stop)
        if i is None:
            raise StopNotOnTrip(stop.id, self.id)
        return self.stop_times[i]

    def arr(self, stop: Stop) -> Time:
        return self.stop_time(stop).arrival_time

    def dep(self, stop: Stop) -> Time:
        return self.stop_time(stop).departure_time

    def serves(self, stop: Stop) -> bool:
        return stop in self._positions


@dataclass(frozen=True, slots=True)
class Route:
    """Trips of one raw route sharing an identical stop pattern.

    Identity is ``(parent_id, group_id)``; trip contents never take part in
    equality or hashing.
    """

    parent_id: str
    group_id: str
    trips: tuple[Trip, ...] = field(compare=False)
    name: str = field(default="", compare=False)
    _stops: tuple[Stop, ...] = field(
        init=False, repr=False, compare=False, default=()
    )
    _positions: dict[Stop, int] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        stops = self.trips[0].stops() if self.trips else ()
        positions: dict[Stop, int] = {}
        for i, stop in enumerate(stops):
            positions.setdefault(stop, i)
        object.__setattr__(self, "_stops", stops)
        object.__setattr__(self, "_positions", positions)

    @property
    def id(self) -> str:
        return f"{self.parent_id}_{self.group_id}"

    def stops(self) -> tuple[Stop, ...]:
        return self._stops

    def position(self, stop: Stop) -> int:
        i = self._positions.get(stop)
        if i is None:
            raise StopNotOnRoute(stop.id, self.id)
        return i

    def earliest_trip(self, index: int, *, not_before: Time) -> Trip | None:
        """Trip with the minimum departure at pattern position ``index``
        that is >= ``not_before``.

        Positions rather than stops are used so a loop visiting a stop twice
        reads the right call. Ties go to the trip listed first, which keeps
        repeated runs stable.
        """

        stop = self._stops[index]
        best: Trip | None = None
        best_dep: Time | None = None
        for trip in self.trips:
            dep = trip.call_at(index, stop).departure_time
            if dep < not_before:
                continue
            if best_dep is None or dep < best_dep:
                best, best_dep = trip, dep
        return best


@dataclass(frozen=True, slots=True)
class RawRoute:
    """A feed route as published; may bundle several stop patterns."""

    id: str
    trips: tuple[Trip, ...]
    name: str = ""

    def trip_groups(self) -> dict[tuple[Stop, ...], list[Trip]]:
        """Trips keyed by their exact stop sequence."""

        groups: dict[tuple[Stop, ...], list[Trip]] = defaultdict(list)
        for trip in self.trips:
            groups[trip.stops()].append(trip)
        return dict(groups)

    def split(self) -> tuple[Route, ...]:
        """One Route per distinct stop pattern.

        Trips that share a stop-id sequence are merged even if the feed
        means them as different services (e.g. opposite-direction loops
        listing the same stops); the feed carries nothing here to tell
        them apart.
        """

        routes: list[Route] = []
        for trips in self.trip_groups().values():
            trips.sort(key=lambda t: (t.stop_times[0].departure_time, t.id))
            routes.append(
                Route(
                    parent_id=self.id,
                    group_id=trips[0].group_id,
                    trips=tuple(trips),
                    name=self.name,
                )
            )
        return tuple(routes)


@dataclass(frozen=True, slots=True)
class Transfer:
    """Directed footpath between two stops."""

    from_stop: Stop
    to_stop: Stop
    duration_s: Time

    def __post_init__(self) -> None:
        if self.duration_s < 0:
            raise ValueError(
                f"Negative transfer time {self.from_stop.id!r} -> "
                f"{self.to_stop.id!r}: {self.duration_s}"
            )
