"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # Job store
    job_store_backend: str = "memory"  # "memory" or "supabase"
    generations_table: str = "generations"

    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_anon_key: str = ""

    # Pipeline dispatch
    pipeline_dispatch_mode: str = "local"  # "local", "redis" or "none"
    pipeline_entrypoint: str = "genjobs.pipeline.local:describe_source"
    redis_url: str = "redis://localhost:6379/0"
    redis_queue_key: str = "generations:queued"

    # Worker API (shared secret; worker routes are disabled when unset)
    worker_api_token: Optional[str] = None

    # Stale job sweep, disabled unless a bound is configured
    stale_processing_after_minutes: Optional[int] = None
    stale_sweep_interval_seconds: int = 60

    # Server
    api_port: int = 8001
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def get_settings() -> Settings:
    return Settings()
