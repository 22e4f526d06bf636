from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import Timetable


class ITimetableRepository(ABC):
    """Port for loading a transit feed into a ready-to-search timetable."""

    @abstractmethod
    def load_timetable(self) -> Timetable:
        raise NotImplementedError
