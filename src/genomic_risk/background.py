"""Background execution of predictor round trips for the Dash app.

Dash callbacks must return quickly, so the remote call runs on a small thread
pool and the page polls :meth:`JobManager.status` until the job settles.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Optional

logger = logging.getLogger(__name__)

QUEUED = "queued"
RUNNING = "running"
FINISHED = "finished"
FAILED = "failed"
UNKNOWN = "unknown"


@dataclass
class _JobRecord:
    job_id: str
    submitted_at: float
    status: str = QUEUED
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    result: Any = None
    exception: Optional[BaseException] = None


class JobNotFoundError(KeyError):
    """Raised when a job id is not tracked by the manager."""

    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job '{job_id}' not found")
        self.job_id = job_id


class JobManager:
    """Run callables on worker threads and keep their outcome for polling.

    Settled jobs are kept until :meth:`discard` is called or until more than
    ``history_limit`` jobs have settled since.
    """

    def __init__(self, max_workers: int = 2, *, history_limit: int = 50) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="predictor")
        self._records: Dict[str, _JobRecord] = {}
        self._settled: Deque[str] = deque()
        self._history_limit = history_limit
        self._lock = threading.Lock()

    def submit(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> str:
        job_id = uuid.uuid4().hex
        record = _JobRecord(job_id=job_id, submitted_at=time.time())
        with self._lock:
            self._records[job_id] = record
        self._executor.submit(self._run, record, func, args, kwargs)
        return job_id

    def _run(self, record: _JobRecord, func: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        with self._lock:
            record.status = RUNNING
            record.started_at = time.time()
        result: Any = None
        error: Optional[BaseException] = None
        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            logger.warning("Job %s failed: %s", record.job_id, exc)
            error = exc
        # Outcome and eviction happen under one lock hold.
        with self._lock:
            record.result = result
            record.exception = error
            record.status = FAILED if error is not None else FINISHED
            record.finished_at = time.time()
            self._settled.append(record.job_id)
            while len(self._settled) > self._history_limit:
                self._records.pop(self._settled.popleft(), None)

    def status(self, job_id: str) -> str:
        with self._lock:
            record = self._records.get(job_id)
            return record.status if record is not None else UNKNOWN

    def result(self, job_id: str) -> Any:
        record = self._get(job_id)
        if record.exception is not None:
            raise record.exception
        return record.result

    def exception(self, job_id: str) -> Optional[BaseException]:
        return self._get(job_id).exception

    def elapsed(self, job_id: str) -> float:
        record = self._get(job_id)
        start = record.started_at or record.submitted_at
        end = record.finished_at or time.time()
        return end - start

    def discard(self, job_id: str) -> None:
        with self._lock:
            self._records.pop(job_id, None)
            if job_id in self._settled:
                self._settled.remove(job_id)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _get(self, job_id: str) -> _JobRecord:
        with self._lock:
            record = self._records.get(job_id)
        if record is None:
            raise JobNotFoundError(job_id)
        return record
