"""Worker-side helpers for driving a job through the lifecycle manager.

A pipeline never sees a cancel signal directly. It finds out when one of
its calls comes back as a no-op, which JobSession turns into JobAbandoned.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from genjobs.jobs.errors import JobAbandoned, PipelineFailure, StoreError
from genjobs.jobs.manager import JobLifecycleManager
from genjobs.jobs.models import JobRecord, VideoMetadata

logger = logging.getLogger(__name__)


@dataclass
class PipelineOutcome:
    result_reference: str
    metadata: Optional[VideoMetadata] = None


class JobSession:
    """One worker's handle on one job."""

    def __init__(self, manager: JobLifecycleManager, job_id: str):
        self._manager = manager
        self.job_id = job_id

    def claim(self) -> JobRecord:
        record = self._manager.claim(self.job_id)
        if record is None:
            raise JobAbandoned(self.job_id, "claim")
        return record

    def progress(self, progress: int, metadata: Optional[VideoMetadata] = None) -> JobRecord:
        record = self._manager.report_progress(self.job_id, progress, metadata)
        if record is None:
            raise JobAbandoned(self.job_id, "progress")
        return record

    def complete(self, outcome: PipelineOutcome) -> JobRecord:
        record = self._manager.complete(
            self.job_id, outcome.result_reference, outcome.metadata
        )
        if record is None:
            raise JobAbandoned(self.job_id, "complete")
        return record

    def fail(self, error_message: str) -> Optional[JobRecord]:
        return self._manager.fail(self.job_id, error_message)


PipelineFn = Callable[[JobRecord, JobSession], PipelineOutcome]


def run_job(
    manager: JobLifecycleManager, job_id: str, pipeline_fn: PipelineFn
) -> Optional[JobRecord]:
    """Claim `job_id`, run the pipeline on it and record the outcome.

    Returns the terminal record, or None if the job was abandoned because
    someone else (normally the owner canceling) got there first. Pipeline
    errors end up in the job as a failure; store errors propagate.
    """
    session = JobSession(manager, job_id)
    try:
        job = session.claim()
        outcome = pipeline_fn(job, session)
        return session.complete(outcome)
    except JobAbandoned as exc:
        logger.info("%s", exc)
        return None
    except StoreError:
        raise
    except PipelineFailure as exc:
        logger.warning("Job %s failed in pipeline: %s", job_id, exc)
        return session.fail(str(exc) or "Generation failed")
    except Exception as exc:
        logger.exception("Job %s crashed in pipeline", job_id)
        return session.fail(f"{type(exc).__name__}: {exc}")
