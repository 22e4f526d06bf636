from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from src.domain.exceptions import UnrelatedQueueItems
from src.domain.models import Route, Stop, Timetable


@dataclass(frozen=True, slots=True)
class QueueItem:
    """A route scan task: scan ``route`` starting at ``hop_stop``.

    ``hop_index`` is the first position of ``hop_stop`` on the route
    pattern; building an item for a stop off the pattern raises
    ``StopNotOnRoute``.
    """

    route: Route
    hop_stop: Stop
    hop_index: int = field(init=False, repr=False, compare=False, default=0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "hop_index", self.route.position(self.hop_stop))

    def conflicts(self, other: QueueItem) -> bool:
        return self.route == other.route

    def precedes(self, other: QueueItem) -> bool:
        """True if this item's hop stop comes strictly earlier on the shared route."""

        if not self.conflicts(other):
            raise UnrelatedQueueItems(self.route.id, other.route.id)
        return self.hop_index < other.hop_index

    def stops(self) -> tuple[Stop, ...]:
        return self.route.stops()[self.hop_index :]


@dataclass(slots=True)
class Queue:
    """Per-round scan queue holding at most one item per route."""

    _items: dict[Route, QueueItem] = field(default_factory=dict)

    @classmethod
    def enqueue(cls, marked_stops: Iterable[Stop], timetable: Timetable) -> Queue:
        queue = cls()
        for stop in marked_stops:
            for route in timetable.routes_serving(stop):
                queue.insert(QueueItem(route=route, hop_stop=stop))
        return queue

    def insert(self, item: QueueItem) -> None:
        # Scanning from the earliest marked stop covers every later one.
        current = self._items.get(item.route)
        if current is None or item.precedes(current):
            self._items[item.route] = item

    def __iter__(self) -> Iterator[QueueItem]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def get(self, route: Route) -> QueueItem | None:
        return self._items.get(route)
