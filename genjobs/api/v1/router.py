"""Aggregate all v1 API routers."""

from fastapi import APIRouter
from genjobs.api.v1.health import router as health_router
from genjobs.api.v1.generations import router as generations_router
from genjobs.api.v1.worker import router as worker_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(generations_router, tags=["generations"])
v1_router.include_router(worker_router, tags=["worker"])
