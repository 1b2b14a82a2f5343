"""Owner-scoped read access to jobs."""

from genjobs.jobs.errors import NotFoundOrNotCancelableError
from genjobs.jobs.projections import JobListResult, JobProjection
from genjobs.jobs.store import JobStore


class JobQueries:
    def __init__(self, store: JobStore):
        self._store = store

    def get(self, job_id: str, owner_id: str) -> JobProjection:
        record = self._store.get(job_id)
        if record is None or record.owner_id != owner_id:
            raise NotFoundOrNotCancelableError("Generation not found")
        return JobProjection.from_record(record)

    def list_jobs(self, owner_id: str) -> JobListResult:
        records = [r for r in self._store.list_for_owner(owner_id) if r.owner_id == owner_id]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return JobListResult(generations=[JobProjection.from_record(r) for r in records])
