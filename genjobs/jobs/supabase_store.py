"""Job store backed by a Supabase (PostgREST) table.

Expected table layout (one row per job):

    id uuid primary key, owner_id text, source_reference text,
    status text, progress int, title text, channel_name text,
    thumbnail_url text, duration text, error_message text,
    result_reference text, created_at timestamptz, updated_at timestamptz,
    started_at timestamptz, completed_at timestamptz

Metadata lives in flat columns so a partial metadata write is a plain
column update and stays inside the single conditional UPDATE.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from supabase import Client

from genjobs.jobs.errors import StoreError
from genjobs.jobs.models import (
    JobChanges,
    JobRecord,
    JobStatus,
    Precondition,
    VideoMetadata,
)
from genjobs.jobs.store import JobStore

logger = logging.getLogger(__name__)

METADATA_COLUMNS = ("title", "channel_name", "thumbnail_url", "duration")


def record_to_row(record: JobRecord) -> Dict[str, Any]:
    row = record.model_dump(mode="json", exclude={"metadata"})
    metadata = record.metadata or VideoMetadata()
    row.update(metadata.model_dump())
    return row


def row_to_record(row: Dict[str, Any]) -> JobRecord:
    data = {k: v for k, v in row.items() if k not in METADATA_COLUMNS}
    metadata = VideoMetadata(**{k: row.get(k) for k in METADATA_COLUMNS})
    data["metadata"] = None if metadata.is_empty() else metadata
    return JobRecord.model_validate(data)


def changes_to_row(changes: JobChanges) -> Dict[str, Any]:
    row = changes.model_dump(mode="json", exclude_none=True, exclude={"metadata"})
    if changes.metadata is not None:
        row.update(changes.metadata.model_dump(exclude_none=True))
    return row


class SupabaseJobStore(JobStore):
    def __init__(self, client_factory: Callable[[], Client], table: str = "generations"):
        self._client_factory = client_factory
        self._table_name = table
        self._client: Optional[Client] = None

    def open(self) -> None:
        if self._client is None:
            self._client = self._client_factory()
            logger.info("Supabase job store opened (table=%s)", self._table_name)

    def close(self) -> None:
        self._client = None

    def _table(self):
        if self._client is None:
            raise StoreError("Job store is not open")
        return self._client.table(self._table_name)

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except Exception as exc:
            logger.error("Supabase %s failed: %s", action, exc)
            raise StoreError(f"Job store {action} failed: {exc}") from exc

    def _to_records(self, rows: List[Dict[str, Any]]) -> List[JobRecord]:
        try:
            return [row_to_record(row) for row in rows]
        except ValueError as exc:
            raise StoreError(f"Malformed job row: {exc}") from exc

    def insert(self, record: JobRecord) -> JobRecord:
        response = self._execute(self._table().insert(record_to_row(record)), "insert")
        records = self._to_records(response.data or [])
        return records[0] if records else record

    def get(self, job_id: str) -> Optional[JobRecord]:
        query = self._table().select("*").eq("id", job_id).limit(1)
        records = self._to_records(self._execute(query, "get").data or [])
        return records[0] if records else None

    def list_for_owner(self, owner_id: str) -> List[JobRecord]:
        query = (
            self._table()
            .select("*")
            .eq("owner_id", owner_id)
            .order("created_at", desc=True)
        )
        return self._to_records(self._execute(query, "list").data or [])

    def list_stale(self, status: JobStatus, updated_before: datetime) -> List[JobRecord]:
        query = (
            self._table()
            .select("*")
            .eq("status", status.value)
            .lt("updated_at", updated_before.isoformat())
        )
        return self._to_records(self._execute(query, "stale scan").data or [])

    def conditional_update(
        self, job_id: str, precondition: Precondition, changes: JobChanges
    ) -> Optional[JobRecord]:
        query = (
            self._table()
            .update(changes_to_row(changes))
            .eq("id", job_id)
            .in_("status", sorted(s.value for s in precondition.statuses))
        )
        if precondition.owner_id is not None:
            query = query.eq("owner_id", precondition.owner_id)
        if precondition.max_progress is not None:
            query = query.lte("progress", precondition.max_progress)
        if precondition.updated_before is not None:
            query = query.lt("updated_at", precondition.updated_before.isoformat())

        records = self._to_records(self._execute(query, "conditional update").data or [])
        return records[0] if records else None

    def ping(self) -> bool:
        try:
            self._execute(self._table().select("id").limit(1), "ping")
        except StoreError:
            return False
        return True
