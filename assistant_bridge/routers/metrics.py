from __future__ import annotations
import os
import psutil
from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response
from assistant_bridge.obs.metrics import metrics_registry
from assistant_bridge.obs.prometheus_metrics import prometheus_metrics

router = APIRouter(tags=["metrics"])

@router.get("/metrics")
async def get_metrics() -> JSONResponse:
    """Application metrics in JSON format."""
    process = psutil.Process(os.getpid())
    return JSONResponse({
        **metrics_registry.get_metrics(),
        "system": {
            "cpu_percent": psutil.cpu_percent(),
            "memory_percent": psutil.virtual_memory().percent,
            "process_memory_mb": process.memory_info().rss / 1024 / 1024
        }
    })

@router.get("/metrics/prometheus")
async def prometheus_metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    prometheus_metrics.update_system_metrics(psutil.Process(os.getpid()).memory_info().rss)
    return Response(
        content=prometheus_metrics.get_prometheus_metrics(),
        media_type=prometheus_metrics.get_content_type()
    )
