from __future__ import annotations
import time
import psutil
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from assistant_bridge.obs.logging_setup import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])

@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """
    Readiness probe.
    Ready once the assistant is provisioned and the router is polling Telegram.
    """
    checks = {}
    identifiers = getattr(request.app.state, "identifiers", None)
    session_router = getattr(request.app.state, "session_router", None)

    checks["assistant"] = (
        {
            "status": "healthy",
            "assistant_id": identifiers.assistant_id,
            "vector_store_id": identifiers.vector_store_id
        }
        if identifiers is not None
        else {"status": "unhealthy", "error": "assistant not provisioned"}
    )

    if session_router is not None and session_router.running:
        checks["router"] = {
            "status": "healthy",
            "in_flight": session_router.in_flight,
            "max_concurrent": session_router.max_concurrent
        }
    else:
        checks["router"] = {"status": "unhealthy", "error": "router not running"}

    memory = psutil.virtual_memory()
    checks["system"] = {
        "status": "healthy" if memory.percent < 90 else "degraded",
        "memory_percent": memory.percent
    }

    overall_healthy = all(check["status"] == "healthy" for check in checks.values())
    if not overall_healthy:
        logger.warning("Readiness check failed", checks=checks)

    return JSONResponse(
        {
            "status": "ready" if overall_healthy else "not_ready",
            "timestamp": time.time(),
            "checks": checks
        },
        status_code=200 if overall_healthy else 503
    )
