"""Generation Job Service - FastAPI application."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from genjobs.api.errors import register_exception_handlers
from genjobs.api.v1.health import router as health_root_router
from genjobs.api.v1.router import v1_router
from genjobs.auth.supabase_auth import SupabaseAuthVerifier
from genjobs.config import Settings, get_settings
from genjobs.db.supabase_client import create_anon_client, create_service_client
from genjobs.jobs.dispatcher import NullTrigger, PipelineTrigger
from genjobs.jobs.in_process_queue import InProcessQueue
from genjobs.jobs.manager import JobLifecycleManager
from genjobs.jobs.redis_trigger import RedisQueueTrigger
from genjobs.jobs.store import InMemoryJobStore, JobStore
from genjobs.jobs.supabase_store import SupabaseJobStore
from genjobs.jobs.sweeper import run_stale_sweeper
from genjobs.pipeline.local import load_pipeline

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> JobStore:
    if settings.job_store_backend == "memory":
        return InMemoryJobStore()
    if settings.job_store_backend == "supabase":
        return SupabaseJobStore(
            lambda: create_service_client(settings),
            table=settings.generations_table,
        )
    raise ValueError(f"Unknown job store backend: {settings.job_store_backend!r}")


def build_trigger(settings: Settings) -> PipelineTrigger:
    mode = settings.pipeline_dispatch_mode
    if mode == "local":
        return InProcessQueue(pipeline_fn=load_pipeline(settings.pipeline_entrypoint))
    if mode == "redis":
        return RedisQueueTrigger(settings.redis_url, settings.redis_queue_key)
    if mode == "none":
        return NullTrigger()
    raise ValueError(f"Unknown pipeline dispatch mode: {mode!r}")


def configure_logging(level: str) -> None:
    """Configure root logging and set the genjobs logger level."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("genjobs").setLevel(level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic. Owns the store and trigger lifecycles."""
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)

    logger.info("Starting Generation Job Service on port %s", settings.api_port)
    logger.info("Job store: %s", settings.job_store_backend)
    logger.info("Dispatch mode: %s", settings.pipeline_dispatch_mode)

    if app.state.auth_verifier is None and settings.supabase_url:
        app.state.auth_verifier = SupabaseAuthVerifier(create_anon_client(settings))

    store = app.state.store or build_store(settings)
    store.open()
    try:
        trigger = app.state.trigger or build_trigger(settings)
        manager = JobLifecycleManager(store, trigger=trigger)
        if isinstance(trigger, InProcessQueue):
            trigger.bind(manager)
        await trigger.start()
    except Exception:
        logger.exception("Pipeline trigger failed to start")
        store.close()
        raise

    app.state.store = store
    app.state.trigger = trigger
    app.state.manager = manager

    sweeper: Optional[asyncio.Task] = None
    if settings.stale_processing_after_minutes:
        sweeper = asyncio.create_task(
            run_stale_sweeper(
                manager,
                timedelta(minutes=settings.stale_processing_after_minutes),
                settings.stale_sweep_interval_seconds,
            )
        )
        logger.info(
            "Stale job sweep enabled (%s min)", settings.stale_processing_after_minutes
        )

    yield

    logger.info("Shutting down Generation Job Service")
    if sweeper is not None:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass
    await trigger.stop()
    store.close()
    app.state.manager = None


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[JobStore] = None,
    trigger: Optional[PipelineTrigger] = None,
    auth_verifier=None,
) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Generation Job Service",
        description="Queues video-to-study-material generations and tracks their lifecycle",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.trigger = trigger
    app.state.auth_verifier = auth_verifier
    app.state.manager = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(health_root_router, tags=["health"])  # GET /health at root
    app.include_router(v1_router)  # All /api/v1/* endpoints
    return app


app = create_app()


def run() -> None:
    settings = app.state.settings
    uvicorn.run(app, host="0.0.0.0", port=settings.api_port)


if __name__ == "__main__":
    run()
