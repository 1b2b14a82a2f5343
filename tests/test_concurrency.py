import threading
from concurrent.futures import ThreadPoolExecutor

from conftest import SOURCE
from genjobs.jobs.errors import NotFoundOrNotCancelableError, ProgressRegressionError
from genjobs.jobs.models import JobStatus


def _race(*calls):
    barrier = threading.Barrier(len(calls))

    def run(call):
        barrier.wait()
        return call()

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        return [f.result() for f in [pool.submit(run, c) for c in calls]]


def test_cancel_and_complete_race_has_exactly_one_winner(manager, store):
    outcomes = {"canceled": 0, "completed": 0}

    for _ in range(50):
        job_id = manager.submit("owner-1", SOURCE).id
        manager.claim(job_id)

        def cancel():
            try:
                manager.cancel(job_id, "owner-1")
                return True
            except NotFoundOrNotCancelableError:
                return False

        def complete():
            return manager.complete(job_id, "video:dQw4w9WgXcQ") is not None

        cancel_won, complete_won = _race(cancel, complete)
        assert cancel_won != complete_won

        final = store.get(job_id)
        if cancel_won:
            assert final.status == JobStatus.CANCELED
            assert final.result_reference is None
            outcomes["canceled"] += 1
        else:
            assert final.status == JobStatus.COMPLETED
            assert final.progress == 100
            outcomes["completed"] += 1

    assert sum(outcomes.values()) == 50


def test_only_one_worker_claims_a_job(manager):
    job_id = manager.submit("owner-1", SOURCE).id

    results = _race(*[lambda: manager.claim(job_id) for _ in range(8)])

    assert sum(r is not None for r in results) == 1


def test_concurrent_progress_never_goes_backwards(manager, processing_job, store):
    seen = []

    def report(value):
        def call():
            try:
                record = manager.report_progress(processing_job, value)
                seen.append(record.progress)
            except ProgressRegressionError:
                pass
        return call

    _race(*[report(v) for v in range(1, 51)])

    assert store.get(processing_job).progress == 50
    assert 50 in seen
