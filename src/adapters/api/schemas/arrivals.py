from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ArrivalsRequestSchema(BaseModel):
    source_stop_id: str = Field(..., min_length=1)
    target_stop_id: str | None = None
    depart_at: datetime | None = None
    max_rounds: int | None = Field(default=None, ge=0)


class StopArrivalSchema(BaseModel):
    stop_id: str
    stop_name: str
    arrival_s: int
    arrival_time: str
    arrive_at: datetime
    boardings: int | None = None


class SearchStatsSchema(BaseModel):
    rounds_executed: int
    route_scans: int
    marked_per_round: list[int] = []


class ArrivalsResponseSchema(BaseModel):
    source_stop_id: str
    target_stop_id: str | None = None
    depart_at: datetime
    target_arrival: StopArrivalSchema | None = None
    arrivals: list[StopArrivalSchema] = []
    improvements_per_round: list[int] = []
    stats: SearchStatsSchema
