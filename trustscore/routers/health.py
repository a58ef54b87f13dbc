"""Health check endpoints: liveness and readiness probes."""

import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from trustscore.models.trust import VerificationLevel
from trustscore.services.trust_service import DEFAULT_FACTORS, compute_trust_score

router = APIRouter(tags=["health"])

_start_time: float = time.time()


@router.get("/health/live")
async def live():
    return {"status": "ok"}


@router.get("/health/ready")
async def ready():
    checks: dict = {"engine": _check_engine()}
    overall_status = "healthy" if checks["engine"]["status"] == "up" else "degraded"

    resp = {
        "status": overall_status,
        "checks": checks,
        "uptime_seconds": int(time.time() - _start_time),
        "version": "1.0.0",
    }

    status_code = 200 if overall_status == "healthy" else 503
    return JSONResponse(content=resp, status_code=status_code)


def _check_engine() -> dict:
    """Run one computation over the default factors as a smoke test."""
    start = time.time()
    try:
        probe = DEFAULT_FACTORS.model_copy(update={"verification_level": VerificationLevel.BASIC})
        compute_trust_score(probe)
    except Exception as exc:
        return {"status": "down", "error": str(exc)}
    latency_ms = round((time.time() - start) * 1000, 2)
    return {"status": "up", "latency_ms": latency_ms}
