import pytest

from conftest import SOURCE
from genjobs.jobs.errors import JobAbandoned, PipelineFailure, StoreError
from genjobs.jobs.models import JobStatus, VideoMetadata
from genjobs.jobs.worker import JobSession, PipelineOutcome, run_job
from genjobs.pipeline.local import describe_source, load_pipeline


def test_run_job_completes_with_local_pipeline(manager):
    job_id = manager.submit("owner-1", SOURCE).id

    record = run_job(manager, job_id, describe_source)

    assert record.status == JobStatus.COMPLETED
    assert record.result_reference == "video:dQw4w9WgXcQ"
    assert record.metadata.thumbnail_url == "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg"
    assert record.started_at is not None


def test_worker_abandons_job_canceled_mid_flight(manager):
    job_id = manager.submit("owner-1", SOURCE).id
    reached = []

    def pipeline(job, session):
        session.progress(10)
        manager.cancel(job.id, "owner-1")
        session.progress(50)
        reached.append("after cancel")
        return PipelineOutcome(result_reference="video:x")

    assert run_job(manager, job_id, pipeline) is None
    assert reached == []

    job = manager.get(job_id, "owner-1")
    assert job.status == JobStatus.CANCELED
    assert job.progress == 10


def test_worker_does_not_start_canceled_job(manager):
    job_id = manager.submit("owner-1", SOURCE).id
    manager.cancel(job_id, "owner-1")
    calls = []

    assert run_job(manager, job_id, lambda job, session: calls.append(job)) is None
    assert calls == []


def test_pipeline_failure_is_recorded_on_the_job(manager):
    job_id = manager.submit("owner-1", SOURCE).id

    def pipeline(job, session):
        session.progress(30, VideoMetadata(title="Never Gonna Give You Up"))
        raise PipelineFailure("Transcript not available for this video")

    record = run_job(manager, job_id, pipeline)

    assert record.status == JobStatus.FAILED
    assert record.error_message == "Transcript not available for this video"
    assert record.metadata.title == "Never Gonna Give You Up"


def test_unexpected_pipeline_error_is_recorded_on_the_job(manager):
    job_id = manager.submit("owner-1", SOURCE).id

    def pipeline(job, session):
        raise RuntimeError("boom")

    record = run_job(manager, job_id, pipeline)

    assert record.status == JobStatus.FAILED
    assert record.error_message == "RuntimeError: boom"


def test_store_errors_escape_the_worker(manager):
    job_id = manager.submit("owner-1", SOURCE).id

    def pipeline(job, session):
        raise StoreError("connection reset")

    with pytest.raises(StoreError):
        run_job(manager, job_id, pipeline)


def test_session_complete_after_fail_is_abandoned(manager, processing_job):
    session = JobSession(manager, processing_job)
    session.fail("gave up")

    with pytest.raises(JobAbandoned):
        session.complete(PipelineOutcome(result_reference="video:x"))


def test_load_pipeline():
    assert load_pipeline("genjobs.pipeline.local:describe_source") is describe_source


@pytest.mark.parametrize(
    "entrypoint",
    ["genjobs.pipeline.local", "genjobs.pipeline.local:nope", ":describe_source"],
)
def test_load_pipeline_rejects_bad_entrypoints(entrypoint):
    with pytest.raises(ValueError):
        load_pipeline(entrypoint)
