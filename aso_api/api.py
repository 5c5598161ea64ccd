"""
ASO Observatory - Telemetry API

FastAPI service that:
- Runs the observatory simulation loops for the lifetime of the process
- Exposes the live state, history, alerts and log stream (read-only)
- Lets the dashboard acknowledge alerts by id
- Generates, returns and dismisses on-demand safety reports

The dashboard only ever talks to this service; it never touches the
simulation objects directly.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from aso_emulator import __version__, config
from aso_emulator.errors import ConfigurationError, NarrativeServiceError
from aso_emulator.models import ObservatoryView, ReportSnapshot
from aso_emulator.observatory import Observatory

config.setup_logging()
logger = logging.getLogger("aso_api")

# -------------------------------------------------------------------
# Data models
# -------------------------------------------------------------------


class SampleOut(BaseModel):
    ts: str = Field(..., description="Timestamp in ISO format (UTC)")
    uncertainty: float
    throughput: float
    alignment_score: float
    risk_level: Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
    last_heartbeat: int = Field(..., description="Epoch milliseconds")


class StateOut(SampleOut):
    responsibility_mode: Literal["AUTO", "MANUAL"]
    heartbeat_active: bool


class AlertOut(BaseModel):
    id: str
    severity: Literal["INFO", "WARNING", "CRITICAL"]
    message: str
    timestamp: int
    acknowledged: bool


class LogOut(BaseModel):
    id: str
    time: str
    type: Literal["SYNC", "FILTER", "DRIFT", "SYSTEM", "LOGIC"]
    message: str
    severity: Literal["INFO", "CAUTION", "SUCCESS"]


class StatsOut(BaseModel):
    sample_count: int
    avg_uncertainty: float
    peak_drift: float
    safety_variance: float
    avg_throughput: float


class ReportOut(BaseModel):
    range_label: str
    sample_window: List[SampleOut]
    narrative_text: str
    generated_at: int
    stats: StatsOut
    reference: str


class ReportStatus(BaseModel):
    busy: bool
    report: Optional[ReportOut] = None


class ReportRequestIn(BaseModel):
    range_label: Literal["1 MINUTE", "5 MINUTES", "15 MINUTES", "1 HOUR"]


# -------------------------------------------------------------------
# Observatory lifecycle
# -------------------------------------------------------------------

OBSERVATORY: Optional[Observatory] = None


def _build_observatory() -> Observatory:
    return Observatory.create()


@asynccontextmanager
async def lifespan(app: FastAPI):
    global OBSERVATORY

    OBSERVATORY = _build_observatory()
    OBSERVATORY.start()
    logger.info("ASO Observatory v%s ready", __version__)

    yield

    logger.info("Initiating shutdown...")
    await OBSERVATORY.stop()
    OBSERVATORY = None


app = FastAPI(title="ASO Observatory API", version=__version__, lifespan=lifespan)

# Handlers are async so they run on the same loop as the tick tasks.


# -------------------------------------------------------------------
# Helper functions
# -------------------------------------------------------------------


def _observatory() -> Observatory:
    if OBSERVATORY is None:
        raise HTTPException(status_code=503, detail="Observatory is not running.")
    return OBSERVATORY


def _view() -> ObservatoryView:
    return _observatory().view()


def _report_out(snapshot: Optional[ReportSnapshot]) -> Optional[ReportOut]:
    if snapshot is None:
        return None
    return ReportOut(**snapshot.to_payload())


# -------------------------------------------------------------------
# Telemetry endpoints
# -------------------------------------------------------------------


@app.get("/health", response_model=Dict[str, Any])
async def health():
    view = _view()
    return {"status": "ok", "tasks": list(view.task_names), "samples": len(view.history)}


@app.get("/state", response_model=StateOut)
async def get_state():
    view = _view()
    return StateOut(
        **view.state.to_payload(),
        responsibility_mode=view.responsibility_mode,
        heartbeat_active=view.heartbeat_active,
    )


@app.get("/history", response_model=List[SampleOut])
async def get_history(limit: int = 101):
    if limit <= 0:
        raise HTTPException(status_code=400, detail="limit must be > 0")
    # return latest N samples, oldest first
    items = _view().history[-limit:]
    return [SampleOut(**s.to_payload()) for s in items]


@app.get("/logs", response_model=List[LogOut])
async def get_logs():
    return [LogOut(**entry.to_payload()) for entry in _view().logs]


# -------------------------------------------------------------------
# Alerts
# -------------------------------------------------------------------


@app.get("/alerts", response_model=List[AlertOut])
async def get_alerts():
    return [AlertOut(**alert.to_payload()) for alert in _view().alerts]


@app.post("/alerts/{alert_id}/ack", response_model=AlertOut)
async def acknowledge_alert(alert_id: str):
    observatory = _observatory()
    if not observatory.acknowledge_alert(alert_id):
        raise HTTPException(status_code=404, detail=f"Unknown alert {alert_id}")
    alert = next(a for a in observatory.view().alerts if a.id == alert_id)
    return AlertOut(**alert.to_payload())


# -------------------------------------------------------------------
# Reports
# -------------------------------------------------------------------


@app.get("/report", response_model=ReportStatus)
async def get_report():
    view = _view()
    return ReportStatus(busy=view.report_busy, report=_report_out(view.report))


@app.post("/report", response_model=ReportStatus)
async def create_report(req: ReportRequestIn):
    """
    Generate a fresh report for the requested range.

    A missing API key is a 503 and a failing narrative service a 502; in
    both cases any previously generated report stays in place.
    """
    observatory = _observatory()
    try:
        snapshot = await observatory.request_report(req.range_label)
    except ConfigurationError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except NarrativeServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return ReportStatus(busy=observatory.view().report_busy, report=_report_out(snapshot))


@app.delete("/report", response_model=Dict[str, str])
async def dismiss_report():
    _observatory().dismiss_report()
    return {"status": "ok"}
