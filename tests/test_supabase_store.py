from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from genjobs.jobs.errors import NotFoundOrNotCancelableError, StoreError
from genjobs.jobs.manager import JobLifecycleManager
from genjobs.jobs.models import JobChanges, JobRecord, JobStatus, Precondition, VideoMetadata
from genjobs.jobs.supabase_store import (
    SupabaseJobStore,
    changes_to_row,
    record_to_row,
    row_to_record,
)

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


class StubQuery:
    """Records the PostgREST builder chain and returns a canned response."""

    def __init__(self, data, error=None):
        self.calls = []
        self._data = data
        self._error = error

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        return self

    def select(self, *args, **kwargs):
        return self._record("select", *args, **kwargs)

    def insert(self, *args, **kwargs):
        return self._record("insert", *args, **kwargs)

    def update(self, *args, **kwargs):
        return self._record("update", *args, **kwargs)

    def eq(self, *args, **kwargs):
        return self._record("eq", *args, **kwargs)

    def in_(self, *args, **kwargs):
        return self._record("in_", *args, **kwargs)

    def lte(self, *args, **kwargs):
        return self._record("lte", *args, **kwargs)

    def lt(self, *args, **kwargs):
        return self._record("lt", *args, **kwargs)

    def order(self, *args, **kwargs):
        return self._record("order", *args, **kwargs)

    def limit(self, *args, **kwargs):
        return self._record("limit", *args, **kwargs)

    def execute(self):
        if self._error is not None:
            raise self._error
        return SimpleNamespace(data=self._data)


class StubClient:
    def __init__(self):
        self.responses = []
        self.queries = []

    def respond(self, data=None, error=None):
        self.responses.append((data if data is not None else [], error))

    def table(self, name):
        data, error = self.responses.pop(0) if self.responses else ([], None)
        query = StubQuery(data, error)
        query.table_name = name
        self.queries.append(query)
        return query


def _processing_row(**overrides):
    row = record_to_row(
        JobRecord(
            id="job-1",
            owner_id="owner-1",
            source_reference="https://youtu.be/dQw4w9WgXcQ",
            status=JobStatus.PROCESSING,
            progress=20,
            created_at=NOW,
            updated_at=NOW,
            started_at=NOW,
        )
    )
    row.update(overrides)
    return row


@pytest.fixture
def client():
    return StubClient()


@pytest.fixture
def store(client):
    store = SupabaseJobStore(lambda: client, table="generations")
    store.open()
    return store


def test_row_mapping_round_trips_metadata():
    record = JobRecord(
        owner_id="owner-1",
        source_reference="https://youtu.be/dQw4w9WgXcQ",
        metadata=VideoMetadata(title="t", duration="3:33"),
    )
    row = record_to_row(record)

    assert row["title"] == "t"
    assert row["channel_name"] is None
    assert row["status"] == "queued"
    assert "metadata" not in row
    assert row_to_record(row) == record


def test_row_without_metadata_has_none():
    assert row_to_record(_processing_row()).metadata is None


def test_changes_row_only_carries_set_fields():
    row = changes_to_row(
        JobChanges(updated_at=NOW, progress=30, metadata=VideoMetadata(title="t"))
    )
    assert set(row) == {"updated_at", "progress", "title"}
    assert row["progress"] == 30
    assert row["title"] == "t"
    assert isinstance(row["updated_at"], str)


def test_conditional_update_filters_on_status_owner_and_progress(store, client):
    client.respond([_processing_row(status="canceled", completed_at=NOW.isoformat())])

    record = store.conditional_update(
        "job-1",
        Precondition(
            statuses=frozenset({JobStatus.QUEUED, JobStatus.PROCESSING}),
            owner_id="owner-1",
            max_progress=40,
        ),
        JobChanges(status=JobStatus.CANCELED, completed_at=NOW, updated_at=NOW),
    )

    assert record.status == JobStatus.CANCELED
    query = client.queries[-1]
    assert query.table_name == "generations"
    names = [call[0] for call in query.calls]
    assert names == ["update", "eq", "in_", "eq", "lte"]
    assert query.calls[0][1][0]["status"] == "canceled"
    assert query.calls[1][1] == ("id", "job-1")
    assert query.calls[2][1] == ("status", ["processing", "queued"])
    assert query.calls[3][1] == ("owner_id", "owner-1")
    assert query.calls[4][1] == ("progress", 40)


def test_conditional_update_with_no_match_is_noop(store, client):
    client.respond([])

    result = store.conditional_update(
        "job-1",
        Precondition(statuses=frozenset({JobStatus.QUEUED})),
        JobChanges(status=JobStatus.PROCESSING, started_at=NOW, updated_at=NOW),
    )

    assert result is None


def test_backend_errors_become_store_errors(store, client):
    client.respond(error=ConnectionError("network down"))

    with pytest.raises(StoreError):
        store.get("job-1")


def test_malformed_rows_become_store_errors(store, client):
    client.respond([_processing_row(status="completed", completed_at=NOW.isoformat())])

    with pytest.raises(StoreError):
        store.get("job-1")


def test_list_orders_newest_first(store, client):
    client.respond([_processing_row()])

    records = store.list_for_owner("owner-1")

    assert [r.id for r in records] == ["job-1"]
    query = client.queries[-1]
    assert ("eq", ("owner_id", "owner-1"), {}) in query.calls
    assert ("order", ("created_at",), {"desc": True}) in query.calls


def test_closed_store_raises(client):
    store = SupabaseJobStore(lambda: client)
    with pytest.raises(StoreError):
        store.get("job-1")


def test_ping_reports_failures(store, client):
    client.respond([])
    assert store.ping()
    client.respond(error=ConnectionError("network down"))
    assert not store.ping()


def test_manager_cancel_with_no_matching_row_is_not_found(store, client):
    client.respond([])
    manager = JobLifecycleManager(store)

    with pytest.raises(NotFoundOrNotCancelableError):
        manager.cancel("job-1", "owner-2")
