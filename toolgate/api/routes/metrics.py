"""
Metrics Routes
"""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from toolgate.api.dependencies import get_metrics_collector
from toolgate.observability.metrics import MetricsCollector

router = APIRouter()


@router.get("/metrics", response_class=PlainTextResponse)
async def prometheus_metrics(
    collector: MetricsCollector = Depends(get_metrics_collector),
) -> str:
    """Get Prometheus metrics."""
    return collector.to_prometheus()
