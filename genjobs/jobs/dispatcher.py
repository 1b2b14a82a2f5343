"""Pipeline trigger interface."""

import logging
from abc import ABC, abstractmethod

from genjobs.jobs.models import JobRecord

logger = logging.getLogger(__name__)


class PipelineTrigger(ABC):
    """Tells the pipeline that a job is waiting. Fire-and-forget."""

    @abstractmethod
    def notify(self, job: JobRecord) -> None:
        """Signal that `job` is queued. Must not block on the pipeline's work."""
        ...

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...


class NullTrigger(PipelineTrigger):
    """For deployments where workers find queued jobs on their own."""

    def notify(self, job: JobRecord) -> None:
        logger.debug("Job %s queued; no trigger configured", job.id)

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass
