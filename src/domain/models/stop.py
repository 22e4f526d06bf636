from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Stop:
    """A boarding point. Identity is the feed's stop id; the name is display only."""

    id: str
    name: str = field(default="", compare=False)
