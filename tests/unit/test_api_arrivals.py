from __future__ import annotations

from datetime import datetime

import httpx
import pytest

from src.adapters.api.dependencies import get_routing_service
from src.app.services.raptor_routing_service import (
    EarliestArrivals,
    StopArrival,
)
from src.domain.algorithms.raptor import RaptorStats
from src.domain.exceptions import MalformedFeedError, StopNotOnRoute, UnknownStop
from src.main import app


class _FakeRoutingService:
    def earliest_arrivals(
        self,
        *,
        source_stop_id: str,
        depart_at: datetime,
        target_stop_id: str | None = None,
        max_rounds: int | None = None,
    ) -> EarliestArrivals:
        if source_stop_id == "missing":
            raise UnknownStop(source_stop_id)
        if source_stop_id == "corrupt":
            raise StopNotOnRoute("B", "R1__A_C")
        if source_stop_id == "broken-feed":
            raise MalformedFeedError("stop_times.txt: unknown stop 'Z'")
        if source_stop_id == "boom":
            raise RuntimeError("secret internals")

        return EarliestArrivals(
            source_stop_id=source_stop_id,
            target_stop_id=target_stop_id,
            depart_at=depart_at,
            depart_s=8 * 3600,
            arrivals=(
                StopArrival(stop_id="A", stop_name="Stop A", arrival_s=8 * 3600, boardings=0),
                StopArrival(stop_id="C", stop_name="Stop C", arrival_s=24 * 3600 + 300, boardings=1),
            ),
            rounds=({"A": 8 * 3600}, {"C": 24 * 3600 + 300}, {}),
            stats=RaptorStats(rounds_executed=2, route_scans=3, marked_per_round=[1, 0]),
        )


async def _post(json: dict, *, raise_app_exceptions: bool = True) -> httpx.Response:
    def _override():
        return _FakeRoutingService()

    app.dependency_overrides[get_routing_service] = _override

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/arrivals", json=json)

    app.dependency_overrides.clear()
    return resp


@pytest.mark.unit
@pytest.mark.anyio
async def test_post_arrivals_returns_arrivals_and_stats() -> None:
    resp = await _post(
        {
            "source_stop_id": "A",
            "target_stop_id": "C",
            "depart_at": "2026-03-02T08:00:00",
        }
    )

    assert resp.status_code == 200
    payload = resp.json()
    assert [a["stop_id"] for a in payload["arrivals"]] == ["A", "C"]
    assert payload["target_arrival"]["stop_id"] == "C"
    # Past-midnight arrivals roll over into the next calendar day.
    assert payload["target_arrival"]["arrival_time"] == "24:05:00"
    assert payload["target_arrival"]["arrive_at"] == "2026-03-03T00:05:00"
    assert payload["improvements_per_round"] == [1, 1, 0]
    assert payload["stats"]["rounds_executed"] == 2


@pytest.mark.unit
@pytest.mark.anyio
async def test_post_arrivals_unknown_stop_is_404() -> None:
    resp = await _post({"source_stop_id": "missing"})

    assert resp.status_code == 404
    assert "missing" in resp.json()["detail"]


@pytest.mark.unit
@pytest.mark.anyio
async def test_post_arrivals_rejects_negative_round_bound() -> None:
    resp = await _post({"source_stop_id": "A", "max_rounds": -1})

    assert resp.status_code == 422


@pytest.mark.unit
@pytest.mark.anyio
async def test_inconsistent_timetable_is_reported_as_json_500() -> None:
    resp = await _post({"source_stop_id": "corrupt"}, raise_app_exceptions=False)

    assert resp.status_code == 500
    assert "R1__A_C" in resp.json()["detail"]


@pytest.mark.unit
@pytest.mark.anyio
async def test_unloadable_timetable_is_503() -> None:
    resp = await _post({"source_stop_id": "broken-feed"}, raise_app_exceptions=False)

    assert resp.status_code == 503
    assert "unknown stop" in resp.json()["detail"]


@pytest.mark.unit
@pytest.mark.anyio
async def test_unexpected_error_hides_details_by_default(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("RAPTOR_REVEAL_ERRORS", raising=False)
    resp = await _post({"source_stop_id": "boom"}, raise_app_exceptions=False)

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal Server Error"}

    monkeypatch.setenv("RAPTOR_REVEAL_ERRORS", "1")
    resp = await _post({"source_stop_id": "boom"}, raise_app_exceptions=False)
    assert resp.json() == {"detail": "secret internals"}


@pytest.mark.unit
@pytest.mark.anyio
async def test_health() -> None:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/health")

    assert resp.json() == {"status": "ok"}
