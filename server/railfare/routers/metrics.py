"""Metrics endpoint for Prometheus scraping."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST

from ..core.dependencies import CONTAINER_DEPENDENCY, ServiceContainer
from ..core.observability import get_prometheus_metrics, metrics_collector

router = APIRouter(tags=["Observability"])


@router.get(
    "/metrics",
    summary="Prometheus Metrics",
    description="Endpoint for Prometheus to scrape metrics",
    response_class=Response,
)
def metrics(container: ServiceContainer = CONTAINER_DEPENDENCY) -> Response:
    """Return Prometheus metrics in text format."""
    metrics_collector.set_cache_entries(len(container.cache))
    return Response(content=get_prometheus_metrics(), media_type=CONTENT_TYPE_LATEST)
