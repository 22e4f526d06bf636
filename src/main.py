from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.adapters.api.controllers.arrivals import router as arrivals_router
from src.domain.exceptions import InconsistentTimetable, MalformedFeedError

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title="Raptor")
app.include_router(arrivals_router)


@app.exception_handler(InconsistentTimetable)
async def inconsistent_timetable_handler(
    request: Request, exc: InconsistentTimetable
) -> JSONResponse:
    # The ids in the message are what an operator needs to find the bad route.
    logger.error("Search aborted on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(MalformedFeedError)
@app.exception_handler(FileNotFoundError)
async def timetable_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Timetable could not be loaded for %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=503, content={"detail": f"Timetable unavailable: {exc}"}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s", request.url.path)

    reveal = (os.getenv("RAPTOR_REVEAL_ERRORS") or "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }
    detail = (str(exc) or exc.__class__.__name__) if reveal else "Internal Server Error"
    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
