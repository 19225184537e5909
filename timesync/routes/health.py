import os
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from timesync.observability.logger import init_sentry

router = APIRouter()


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class LastRun(BaseModel):
    """Outcome of the most recent results notification."""

    time: str = Field(default_factory=_now_iso)
    action: str
    meeting_id: str
    driver: str
    recipients_count: int
    delivered_count: int = 0
    success: bool = True
    duration_ms: Optional[float] = None
    error: Optional[str] = None


_last_run: Optional[LastRun] = None


def update_last_run(
    action: str,
    meeting_id: str,
    driver: str,
    recipients_count: int,
    delivered_count: int = 0,
    duration_ms: Optional[float] = None,
    success: bool = True,
    error: Optional[str] = None
) -> None:
    """
    Record the last notification run for /healthz.

    Args:
        action: The action performed
        meeting_id: The meeting that was notified
        driver: The email driver used
        recipients_count: Number of recipients attempted
        delivered_count: Number of recipients that were sent to successfully
        duration_ms: Optional duration in milliseconds
        success: Whether every recipient was reached
        error: Optional error message
    """
    global _last_run
    _last_run = LastRun(
        action=action,
        meeting_id=meeting_id,
        driver=driver,
        recipients_count=recipients_count,
        delivered_count=delivered_count,
        success=success,
        duration_ms=round(duration_ms, 2) if duration_ms is not None else None,
        error=error,
    )


def get_last_run() -> Optional[Dict[str, Any]]:
    if _last_run is None:
        return None
    return _last_run.model_dump(exclude_none=True)


@router.get("/healthz")
async def health_check() -> JSONResponse:
    response: Dict[str, Any] = {
        "status": "ok",
        "timestamp": _now_iso(),
        "observability": {
            "enabled": os.getenv("OBS_ENABLED", "false").lower() == "true",
            "sentry_configured": bool(os.getenv("SENTRY_DSN")),
        },
    }
    last_run = get_last_run()
    if last_run:
        response["last_run"] = last_run
    return JSONResponse(status_code=200, content=response)


def _check(load) -> str:
    try:
        load()
    except Exception:
        return "error"
    return "ok"


@router.get("/healthz/ready")
async def readiness_check() -> JSONResponse:
    """Ready when the meeting store, the mail driver, and the results template all load."""
    from timesync.core.config import load_config
    from timesync.rendering.results_renderer import templates
    from timesync.routes.meetings import get_store
    from timesync.services.emailer import select_emailer

    checks = {
        "meeting_store": _check(get_store),
        "email_driver": _check(lambda: select_emailer(load_config())),
        "results_template": _check(lambda: templates.get_template("results_email.html")),
    }
    all_healthy = all(status == "ok" for status in checks.values())

    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content={
            "status": "ready" if all_healthy else "not_ready",
            "timestamp": _now_iso(),
            "checks": checks,
        },
    )


init_sentry()
