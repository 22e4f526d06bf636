from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from src.adapters.api.dependencies import get_routing_service
from src.adapters.api.schemas.arrivals import (
    ArrivalsRequestSchema,
    ArrivalsResponseSchema,
    SearchStatsSchema,
    StopArrivalSchema,
)
from src.app.services.raptor_routing_service import (
    EarliestArrivals,
    RaptorRoutingService,
)
from src.app.services.routing_helpers import (
    format_service_time,
    service_datetime_from_seconds,
)
from src.domain.exceptions import NoPathFound, UnknownStop

router = APIRouter(tags=["arrivals"])


def _result_to_schema(result: EarliestArrivals) -> ArrivalsResponseSchema:
    arrivals = [
        StopArrivalSchema(
            stop_id=a.stop_id,
            stop_name=a.stop_name,
            arrival_s=a.arrival_s,
            arrival_time=format_service_time(a.arrival_s),
            arrive_at=service_datetime_from_seconds(result.depart_at, a.arrival_s),
            boardings=a.boardings,
        )
        for a in result.arrivals
    ]
    target = next(
        (a for a in arrivals if a.stop_id == result.target_stop_id), None
    )
    return ArrivalsResponseSchema(
        source_stop_id=result.source_stop_id,
        target_stop_id=result.target_stop_id,
        depart_at=result.depart_at,
        target_arrival=target,
        arrivals=arrivals,
        improvements_per_round=[len(r) for r in result.rounds],
        stats=SearchStatsSchema(
            rounds_executed=result.stats.rounds_executed,
            route_scans=result.stats.route_scans,
            marked_per_round=list(result.stats.marked_per_round),
        ),
    )


@router.post("/arrivals", response_model=ArrivalsResponseSchema)
def earliest_arrivals(
    req: ArrivalsRequestSchema,
    service: RaptorRoutingService = Depends(get_routing_service),
) -> ArrivalsResponseSchema:
    depart_at = req.depart_at or datetime.now()
    try:
        result = service.earliest_arrivals(
            source_stop_id=req.source_stop_id,
            depart_at=depart_at,
            target_stop_id=req.target_stop_id,
            max_rounds=req.max_rounds,
        )
    except (UnknownStop, NoPathFound) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _result_to_schema(result)
