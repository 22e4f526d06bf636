from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from src.domain.exceptions import InconsistentTimetable
from src.domain.models import Stop, Time, Timetable, Trip

from .queue import Queue, QueueItem

logger = logging.getLogger(__name__)

Tau = dict[Stop, Time]


@dataclass(frozen=True, slots=True)
class Round:
    """Arrival improvements found in one round.

    ``rounds[k].tau`` holds arrivals reachable with at most k boardings
    that beat every earlier round; a stop missing from it gained nothing
    in round k.
    """

    tau: Tau = field(default_factory=dict)


@dataclass(slots=True)
class RaptorStats:
    rounds_executed: int = 0
    route_scans: int = 0
    marked_per_round: list[int] = field(default_factory=list)
    consistency_failures: list[str] = field(default_factory=list)


class Raptor:
    """Round-based earliest-arrival search from a single source stop.

    Each call to :meth:`round` scans every route touching a stop marked in
    the previous round, then relaxes footpaths once. A search instance is
    single use; the timetable is only read.

    Footpaths do not chain within a round: a stop first reached by walking
    in round k only walks on in round k+1.
    """

    def __init__(
        self,
        timetable: Timetable,
        source: Stop,
        start_time: Time,
        target: Stop | None = None,
    ) -> None:
        self.timetable = timetable
        self.source = source
        self.start_time = start_time
        self.target = target

        self.tau_min: Tau = {source: start_time}
        # Insertion-ordered set; consumed at the start of every round.
        self.marked_stops: dict[Stop, None] = {source: None}
        self.stats = RaptorStats()

        tau0: Tau = {source: start_time}
        for transfer in timetable.transfers_from(source):
            arrival = start_time + transfer.duration_s
            if arrival < self.tau_min.get(transfer.to_stop, math.inf):
                tau0[transfer.to_stop] = arrival
                self.tau_min[transfer.to_stop] = arrival
                self.marked_stops[transfer.to_stop] = None

        self.rounds: list[Round] = [Round(tau=tau0)]

    def run(self, max_rounds: int | None = None) -> Tau:
        """Run rounds until no stop is marked, or until ``max_rounds`` rounds ran.

        Stopping early leaves ``tau_min`` holding valid, possibly
        non-optimal, arrivals.
        """

        while not self.is_finished():
            if max_rounds is not None and self.stats.rounds_executed >= max_rounds:
                logger.debug(
                    "Stopping search from %s after %d rounds (bound reached)",
                    self.source.id,
                    self.stats.rounds_executed,
                )
                break
            self.round()
        return self.tau_min

    def round(self) -> Round:
        marked = list(self.marked_stops)
        self.marked_stops = {}
        prev_tau = self.rounds[-1].tau
        tau: Tau = {}

        try:
            for item in Queue.enqueue(marked, self.timetable):
                self._scan_route(item, prev_tau, tau)
        except InconsistentTimetable as exc:
            self.stats.consistency_failures.append(str(exc))
            logger.error(
                "Search from %s aborted in round %d: %s",
                self.source.id,
                len(self.rounds),
                exc,
            )
            raise

        self._relax_transfers(tau)

        current = Round(tau=tau)
        self.rounds.append(current)
        self.stats.rounds_executed += 1
        self.stats.marked_per_round.append(len(self.marked_stops))
        logger.debug(
            "Round %d from %s: %d improved, %d marked",
            len(self.rounds) - 1,
            self.source.id,
            len(tau),
            len(self.marked_stops),
        )
        return current

    def is_finished(self) -> bool:
        return bool(self.rounds) and not self.marked_stops

    def _bound(self, stop: Stop) -> float:
        bound = self.tau_min.get(stop, math.inf)
        if self.target is not None:
            # Nothing arriving after the best known target arrival can help.
            bound = min(bound, self.tau_min.get(self.target, math.inf))
        return bound

    def _scan_route(self, item: QueueItem, prev_tau: Tau, tau: Tau) -> None:
        self.stats.route_scans += 1
        route = item.route
        stops = route.stops()
        trip: Trip | None = None

        for i in range(item.hop_index, len(stops)):
            stop = stops[i]
            if trip is not None:
                arrival = trip.call_at(i, stop).arrival_time
                if arrival < self._bound(stop):
                    tau[stop] = arrival
                    self.tau_min[stop] = arrival
                    self.marked_stops[stop] = None

            tau_prev = prev_tau.get(stop)
            if tau_prev is None:
                continue
            if trip is not None and trip.call_at(i, stop).departure_time < tau_prev:
                continue
            trip = route.earliest_trip(i, not_before=tau_prev)

    def _relax_transfers(self, tau: Tau) -> None:
        # Snapshot origins so a walk never starts from a stop reached by walking.
        origins = [(stop, tau[stop]) for stop in self.marked_stops]

        for stop, departure in origins:
            for transfer in self.timetable.transfers_from(stop):
                arrival = departure + transfer.duration_s
                to_stop = transfer.to_stop

                # Beating tau_min also beats this round's value.
                if arrival < self.tau_min.get(to_stop, math.inf):
                    tau[to_stop] = arrival
                    self.tau_min[to_stop] = arrival
                    self.marked_stops[to_stop] = None

    def arrival(self, stop: Stop) -> Time | None:
        return self.tau_min.get(stop)

    def boardings(self, stop: Stop) -> int | None:
        """Fewest boardings reaching ``stop`` at its best known arrival."""

        best = self.tau_min.get(stop)
        if best is None:
            return None
        for k, rnd in enumerate(self.rounds):
            if rnd.tau.get(stop) == best:
                return k
        return None

    def arrivals_by_round(self) -> list[dict[str, Time]]:
        return [
            {stop.id: arrival for stop, arrival in rnd.tau.items()}
            for rnd in self.rounds
        ]
