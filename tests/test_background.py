from __future__ import annotations

import threading
import time

import pytest

from genomic_risk.background import FINISHED, RUNNING, UNKNOWN, JobManager, JobNotFoundError


def _wait_settled(manager: JobManager, job_ids, timeout: float = 10) -> None:
    deadline = time.time() + timeout
    while True:
        statuses = [manager.status(job_id) for job_id in job_ids]
        if all(status in {"finished", "failed", "unknown"} for status in statuses):
            return
        if time.time() > deadline:
            pytest.fail("Jobs did not complete in time")
        time.sleep(0.01)


def test_job_result_available_after_completion():
    manager = JobManager(max_workers=2)
    job_id = manager.submit(lambda value: value * 2, 21)
    _wait_settled(manager, [job_id])

    assert manager.status(job_id) == FINISHED
    assert manager.result(job_id) == 42
    assert manager.exception(job_id) is None
    assert manager.elapsed(job_id) >= 0
    manager.shutdown()


def test_job_failure_is_recorded_and_reraised():
    manager = JobManager()

    def boom():
        raise ConnectionError("predictor offline")

    job_id = manager.submit(boom)
    _wait_settled(manager, [job_id])

    assert manager.status(job_id) == "failed"
    assert isinstance(manager.exception(job_id), ConnectionError)
    with pytest.raises(ConnectionError, match="predictor offline"):
        manager.result(job_id)
    manager.shutdown()


def test_running_status_reported_while_job_blocks():
    manager = JobManager(max_workers=1)
    started = threading.Event()
    release = threading.Event()

    def blocking():
        started.set()
        release.wait(5)
        return "done"

    job_id = manager.submit(blocking)
    assert started.wait(5)
    assert manager.status(job_id) == RUNNING
    release.set()
    _wait_settled(manager, [job_id])
    assert manager.result(job_id) == "done"
    manager.shutdown()


def test_history_limit_evicts_oldest_settled_jobs():
    manager = JobManager(max_workers=4, history_limit=5)
    job_ids = [manager.submit(lambda value=value: value) for value in range(50)]
    _wait_settled(manager, job_ids)

    assert manager.status(job_ids[0]) == UNKNOWN
    with pytest.raises(JobNotFoundError):
        manager.result(job_ids[0])
    assert sum(manager.status(job_id) == FINISHED for job_id in job_ids) == 5
    manager.shutdown()


def test_discard_forgets_job():
    manager = JobManager()
    job_id = manager.submit(lambda: 1)
    _wait_settled(manager, [job_id])

    manager.discard(job_id)

    assert manager.status(job_id) == UNKNOWN
    with pytest.raises(JobNotFoundError):
        manager.exception(job_id)
    manager.shutdown()
