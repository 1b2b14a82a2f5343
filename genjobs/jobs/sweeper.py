"""Periodic sweep that fails processing jobs whose worker went silent."""

import asyncio
import logging
from datetime import timedelta

from genjobs.jobs.errors import StoreError
from genjobs.jobs.manager import JobLifecycleManager

logger = logging.getLogger(__name__)


async def run_stale_sweeper(
    manager: JobLifecycleManager, older_than: timedelta, interval_seconds: float
) -> None:
    """Call manager.fail_stale every `interval_seconds` until cancelled."""
    loop = asyncio.get_running_loop()
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await loop.run_in_executor(None, manager.fail_stale, older_than)
        except StoreError as exc:
            logger.error("Stale job sweep failed: %s", exc)
