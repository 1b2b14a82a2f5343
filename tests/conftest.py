from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from genjobs.jobs.dispatcher import PipelineTrigger
from genjobs.jobs.manager import JobLifecycleManager
from genjobs.jobs.models import JobRecord
from genjobs.jobs.store import InMemoryJobStore

SOURCE = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


class TickingClock:
    """Deterministic clock that moves forward on every read."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, tzinfo=timezone.utc)) -> None:
        self.now = start
        self.step = timedelta(seconds=1)

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class RecordingTrigger(PipelineTrigger):
    def __init__(self) -> None:
        self.notified: List[str] = []

    def notify(self, job: JobRecord) -> None:
        self.notified.append(job.id)

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass


@pytest.fixture
def store():
    store = InMemoryJobStore()
    store.open()
    yield store
    store.close()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def trigger() -> RecordingTrigger:
    return RecordingTrigger()


@pytest.fixture
def manager(store, trigger, clock) -> JobLifecycleManager:
    return JobLifecycleManager(store, trigger=trigger, clock=clock)


@pytest.fixture
def processing_job(manager) -> str:
    job_id = manager.submit("owner-1", SOURCE).id
    assert manager.claim(job_id) is not None
    return job_id
