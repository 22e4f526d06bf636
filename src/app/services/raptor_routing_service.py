from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from src.app.ports.output import ITimetableRepository
from src.domain.algorithms.raptor import Raptor, RaptorStats
from src.domain.exceptions import NoPathFound, UnknownStop
from src.domain.models import Stop, Timetable

from .routing_helpers import seconds_since_midnight

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StopArrival:
    stop_id: str
    stop_name: str
    arrival_s: int
    boardings: int | None


@dataclass(frozen=True, slots=True)
class EarliestArrivals:
    """Outcome of one search: best arrival per reached stop plus round history."""

    source_stop_id: str
    target_stop_id: str | None
    depart_at: datetime
    depart_s: int
    arrivals: tuple[StopArrival, ...]
    rounds: tuple[dict[str, int], ...]
    stats: RaptorStats

    def arrival_s(self, stop_id: str) -> int | None:
        for arrival in self.arrivals:
            if arrival.stop_id == stop_id:
                return arrival.arrival_s
        return None


@dataclass(slots=True)
class RaptorRoutingService:
    """Application service (use case) for earliest-arrival queries.

    The timetable is loaded on first use and kept for the service's lifetime.
    """

    timetable_repository: ITimetableRepository
    max_rounds: int | None = None

    _timetable: Timetable | None = None

    def timetable(self) -> Timetable:
        if self._timetable is None:
            self._timetable = self.timetable_repository.load_timetable()
            logger.info(
                "Timetable loaded: %d stops, %d routes, %d trips, %d transfers",
                len(self._timetable.stops),
                len(self._timetable.routes),
                len(self._timetable.trips),
                len(self._timetable.transfers),
            )
        return self._timetable

    def earliest_arrivals(
        self,
        *,
        source_stop_id: str,
        depart_at: datetime,
        target_stop_id: str | None = None,
        max_rounds: int | None = None,
    ) -> EarliestArrivals:
        timetable = self.timetable()
        source = self._stop(timetable, source_stop_id)
        target = (
            self._stop(timetable, target_stop_id) if target_stop_id is not None else None
        )

        depart_s = seconds_since_midnight(depart_at)
        raptor = Raptor(timetable, source, depart_s, target=target)
        raptor.run(max_rounds=max_rounds if max_rounds is not None else self.max_rounds)

        logger.info(
            "Search from %s at %d: %d rounds, %d route scans, %d stops reached",
            source.id,
            depart_s,
            raptor.stats.rounds_executed,
            raptor.stats.route_scans,
            len(raptor.tau_min),
        )

        if target is not None and raptor.arrival(target) is None:
            raise NoPathFound(f"Stop {target.id!r} is not reachable from {source.id!r}")

        arrivals = sorted(
            (
                StopArrival(
                    stop_id=stop.id,
                    stop_name=stop.name,
                    arrival_s=arrival,
                    boardings=raptor.boardings(stop),
                )
                for stop, arrival in raptor.tau_min.items()
            ),
            key=lambda a: (a.arrival_s, a.stop_id),
        )

        return EarliestArrivals(
            source_stop_id=source.id,
            target_stop_id=target.id if target else None,
            depart_at=depart_at,
            depart_s=depart_s,
            arrivals=tuple(arrivals),
            rounds=tuple(raptor.arrivals_by_round()),
            stats=raptor.stats,
        )

    def _stop(self, timetable: Timetable, stop_id: str) -> Stop:
        stop = timetable.stop(stop_id)
        if stop is None:
            raise UnknownStop(stop_id)
        return stop
