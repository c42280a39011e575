"""
Takeoff Workbook API
FastAPI service that turns extracted takeoff items and rebar schedules into
a Dim Sheet, Rebar Schedule and priced Bill of Quantities workbook.
"""
import os
import time
import logging
from fastapi import FastAPI
from takeoff.services.logging_config import setup_logging
from takeoff.services.middleware import RequestTimingMiddleware
from takeoff.services.perf_monitor import tracker

# Load .env file automatically in dev (no-op if the file is missing)
from dotenv import load_dotenv
load_dotenv()

_log_level = os.getenv("LOG_LEVEL", "INFO")
_json_logs = os.getenv("LOG_FORMAT", "json").lower() != "text"
setup_logging(level=_log_level, json_output=_json_logs)
logger = logging.getLogger("takeoff-api")

_PROCESS_START = time.monotonic()

app = FastAPI(
    title="Takeoff Workbook API",
    version="1.0.0",
    description="Dim Sheet, Rebar Schedule and BOQ synthesis for construction takeoffs",
)

app.add_middleware(RequestTimingMiddleware)

from takeoff.api.takeoff_routes import router as takeoff_router

app.include_router(takeoff_router)


@app.get("/health")
async def health_check():
    return {"status": "active", "version": "1.0.0"}


@app.get("/metrics")
async def metrics():
    """Synthesis counters from the in-process SynthesisTracker."""
    return {
        "uptime_seconds": round(time.monotonic() - _PROCESS_START, 1),
        **tracker.get_metrics(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("takeoff.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)
