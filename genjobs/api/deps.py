"""Request dependencies. Everything here comes off app.state, set up in the lifespan."""

from fastapi import HTTPException, Request

from genjobs.jobs.manager import JobLifecycleManager


def get_manager(request: Request) -> JobLifecycleManager:
    manager = getattr(request.app.state, "manager", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="Job manager not initialized")
    return manager
