"""Job store interface and in-memory implementation."""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from genjobs.jobs.errors import StoreError
from genjobs.jobs.models import JobChanges, JobRecord, JobStatus, Precondition


class JobStore(ABC):
    """Keyed storage for job records with compare-and-set updates.

    Owned by the process entry point: it calls open() before handing the
    store to anything and close() on shutdown.
    """

    @abstractmethod
    def open(self) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    @abstractmethod
    def insert(self, record: JobRecord) -> JobRecord:
        """Persist a new record. Returns the stored record."""
        ...

    @abstractmethod
    def get(self, job_id: str) -> Optional[JobRecord]:
        ...

    @abstractmethod
    def list_for_owner(self, owner_id: str) -> List[JobRecord]:
        """All records for one owner, newest created_at first."""
        ...

    @abstractmethod
    def list_stale(self, status: JobStatus, updated_before: datetime) -> List[JobRecord]:
        """Records in `status` whose updated_at is older than `updated_before`."""
        ...

    @abstractmethod
    def conditional_update(
        self, job_id: str, precondition: Precondition, changes: JobChanges
    ) -> Optional[JobRecord]:
        """Apply `changes` atomically if the stored record matches `precondition`.

        Returns the updated record, or None if nothing matched. Raises
        StoreError if the update could not be evaluated.
        """
        ...

    @abstractmethod
    def ping(self) -> bool:
        ...


class InMemoryJobStore(JobStore):
    """Process-local store for development and tests.

    A single lock makes each conditional update atomic with respect to
    every other store call, whatever thread it comes from.
    """

    def __init__(self):
        self._records: Dict[str, JobRecord] = {}
        self._lock = threading.Lock()
        self._open = False

    def open(self) -> None:
        self._open = True

    def close(self) -> None:
        self._open = False

    def _ensure_open(self) -> None:
        if not self._open:
            raise StoreError("Job store is not open")

    def insert(self, record: JobRecord) -> JobRecord:
        with self._lock:
            self._ensure_open()
            if record.id in self._records:
                raise StoreError(f"Job {record.id} already exists")
            self._records[record.id] = record
            return record

    def get(self, job_id: str) -> Optional[JobRecord]:
        with self._lock:
            self._ensure_open()
            return self._records.get(job_id)

    def list_for_owner(self, owner_id: str) -> List[JobRecord]:
        with self._lock:
            self._ensure_open()
            owned = [r for r in self._records.values() if r.owner_id == owner_id]
        return sorted(owned, key=lambda r: r.created_at, reverse=True)

    def list_stale(self, status: JobStatus, updated_before: datetime) -> List[JobRecord]:
        with self._lock:
            self._ensure_open()
            return [
                r for r in self._records.values()
                if r.status == status and r.updated_at < updated_before
            ]

    def conditional_update(
        self, job_id: str, precondition: Precondition, changes: JobChanges
    ) -> Optional[JobRecord]:
        with self._lock:
            self._ensure_open()
            current = self._records.get(job_id)
            if current is None or not precondition.matches(current):
                return None
            try:
                updated = changes.apply(current)
            except ValueError as exc:
                raise StoreError(f"Update for job {job_id} rejected: {exc}") from exc
            self._records[job_id] = updated
            return updated

    def ping(self) -> bool:
        return self._open
