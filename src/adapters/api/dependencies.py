from __future__ import annotations

import os
from functools import lru_cache

from src.adapters.persistence.local_gtfs_repository import LocalGtfsRepository
from src.adapters.persistence.s3_cached_timetable_repository import (
    S3CachedTimetableRepository,
)
from src.app.ports.output import ITimetableRepository
from src.app.services.raptor_routing_service import RaptorRoutingService


@lru_cache(maxsize=1)
def get_routing_service() -> RaptorRoutingService:
    # One service per process: the timetable it loads is shared read-only.
    repository: ITimetableRepository = LocalGtfsRepository()
    if os.getenv("TIMETABLE_BUCKET"):
        repository = S3CachedTimetableRepository(upstream=repository)

    service = RaptorRoutingService(timetable_repository=repository)

    # Allow tuning via env without changing code.
    if os.getenv("RAPTOR_MAX_ROUNDS"):
        service.max_rounds = int(os.environ["RAPTOR_MAX_ROUNDS"])

    return service
