"""Health check endpoint."""

from fastapi import APIRouter, Request
import platform
import sys

router = APIRouter()


@router.get("/health")
def health_check(request: Request):
    """Service health and job store reachability."""
    store = getattr(request.app.state, "store", None)
    settings = request.app.state.settings
    store_ok = store is not None and store.ping()

    return {
        "status": "healthy" if store_ok else "degraded",
        "store_backend": settings.job_store_backend,
        "store_reachable": store_ok,
        "dispatch_mode": settings.pipeline_dispatch_mode,
        "python_version": sys.version,
        "platform": platform.platform(),
    }
