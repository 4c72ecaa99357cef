from __future__ import annotations
import time
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from assistant_bridge import __version__

router = APIRouter(tags=["health"])

@router.get("/health")
async def health() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse({"status": "ok", "version": __version__})

@router.get("/live")
async def liveness_check() -> JSONResponse:
    """Liveness probe: the process is serving requests."""
    return JSONResponse({
        "status": "alive",
        "timestamp": time.time(),
        "service": "assistant-bridge",
        "version": __version__
    })
