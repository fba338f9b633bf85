"""Metrics router - Prometheus scrape endpoint."""

from fastapi import APIRouter, Depends, Response

from pulse.api.deps import get_metrics
from pulse.monitor import CheckMetrics

router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def metrics(check_metrics: CheckMetrics = Depends(get_metrics)) -> Response:
    """Expose check gauges in the Prometheus text format."""
    return Response(content=check_metrics.render(), media_type=check_metrics.content_type)
