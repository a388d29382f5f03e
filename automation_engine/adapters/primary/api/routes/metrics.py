from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["Metrics"])


@router.get("/metrics")
async def metrics():
    """Prometheus scrape endpoint: run, action and sweep counters."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
