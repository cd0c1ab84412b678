"""
Sequential scan queue.

Images are processed one at a time, in submission order, by a single
background worker thread. Submitting never blocks on a scan. Observers
get immutable QueueSnapshots through on_update; finished jobs leave the
queue and a snapshot without them is published.
"""

import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Tuple, Union

from infra.pipeline.logger import PipelineLogger

from .images import load_scan_image
from .runner import ScanPipeline
from .schemas import ScanResult

PROCESSING_ERROR_MESSAGE = "processing error"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass
class ScanJob:
    id: str
    image_ref: str
    status: JobStatus = JobStatus.PENDING
    current: int = 0
    total: int = 0
    books_found: int = 0
    error: Optional[str] = None
    submitted_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def progress(self) -> dict:
        return {'current': self.current, 'total': self.total}

    def snapshot(self) -> "JobSnapshot":
        return JobSnapshot(
            id=self.id,
            image_ref=self.image_ref,
            status=self.status,
            current=self.current,
            total=self.total,
            books_found=self.books_found,
            error=self.error,
        )


@dataclass(frozen=True)
class JobSnapshot:
    id: str
    image_ref: str
    status: JobStatus
    current: int
    total: int
    books_found: int
    error: Optional[str]

    @property
    def progress(self) -> dict:
        return {'current': self.current, 'total': self.total}


@dataclass(frozen=True)
class QueueSnapshot:
    jobs: Tuple[JobSnapshot, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.jobs

    @property
    def active(self) -> Optional[JobSnapshot]:
        for job in self.jobs:
            if job.status == JobStatus.PROCESSING:
                return job
        return None

    @property
    def pending_count(self) -> int:
        return sum(1 for job in self.jobs if job.status == JobStatus.PENDING)


class LibraryStore(Protocol):
    def add_scan(self, scan_id: str, image_ref: str, books: list): ...


def new_job_id() -> str:
    return f"scan-{datetime.now().strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:6]}"


class ScanQueue:
    def __init__(
        self,
        pipeline: ScanPipeline,
        library: LibraryStore,
        logger: Optional[PipelineLogger] = None,
        cooldown_seconds: float = 1.0,
        sections_x: int = 1,
        sections_y: int = 1,
        max_image_edge: int = 2048,
        load_image: Callable = load_scan_image,
        on_update: Optional[Callable[[QueueSnapshot], None]] = None,
        on_error: Optional[Callable[[JobSnapshot, str], None]] = None,
        on_complete: Optional[Callable[[JobSnapshot, ScanResult], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.pipeline = pipeline
        self.library = library
        self.logger = logger or PipelineLogger("shelf", "queue")
        self.cooldown_seconds = cooldown_seconds
        self.sections_x = sections_x
        self.sections_y = sections_y
        self.max_image_edge = max_image_edge
        self.load_image = load_image
        self.on_update = on_update
        self.on_error = on_error
        self.on_complete = on_complete
        self._sleep = sleep

        self._jobs: List[ScanJob] = []
        self._history: List[JobSnapshot] = []
        self._cond = threading.Condition()
        self._worker: Optional[threading.Thread] = None

    def submit(self, image_ref: Union[str, Path]) -> ScanJob:
        """Queue an image; starts the worker if the queue was idle."""
        job = ScanJob(id=new_job_id(), image_ref=str(image_ref))

        with self._cond:
            self._jobs.append(job)
            position = len(self._jobs)
            if self._worker is None:
                self._worker = threading.Thread(
                    target=self._run,
                    name="scan-queue-worker",
                    daemon=True,
                )
                self._worker.start()

        self.logger.info(
            f"Queued {job.image_ref}",
            job_id=job.id,
            image_ref=job.image_ref,
            position=position,
        )
        self._publish()
        return job

    def snapshot(self) -> QueueSnapshot:
        with self._cond:
            return QueueSnapshot(jobs=tuple(job.snapshot() for job in self._jobs))

    @property
    def history(self) -> List[JobSnapshot]:
        """Finished jobs, oldest first."""
        with self._cond:
            return list(self._history)

    @property
    def is_idle(self) -> bool:
        with self._cond:
            return not self._jobs and self._worker is None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the queue drains. Returns False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while self._jobs or self._worker is not None:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._cond.wait(remaining)
        return True

    def _next_job(self) -> Optional[ScanJob]:
        for job in self._jobs:
            if job.status == JobStatus.PENDING:
                return job
        return None

    def _run(self):
        while True:
            with self._cond:
                job = self._next_job()
                if job is None:
                    self._worker = None
                    self._cond.notify_all()
                    return
                job.status = JobStatus.PROCESSING
                job.total = self.sections_x * self.sections_y

            self._publish()
            self._process(job)

            with self._cond:
                self._jobs.remove(job)
                self._history.append(job.snapshot())
                has_more = bool(self._jobs)
                self._cond.notify_all()

            self._publish()

            if has_more and self.cooldown_seconds > 0:
                self._sleep(self.cooldown_seconds)

    def _process(self, job: ScanJob):
        self.logger.info(f"Processing {job.image_ref}", job_id=job.id)

        try:
            image = self.load_image(job.image_ref, self.max_image_edge)

            def on_progress(current: int, total: int):
                with self._cond:
                    job.current = current
                    job.total = total
                self.logger.progress(f"Scanning {job.image_ref}", current, total, job_id=job.id)
                self._publish()

            result = self.pipeline.run(
                image,
                sections_x=self.sections_x,
                sections_y=self.sections_y,
                on_progress=on_progress,
            )
            self.library.add_scan(job.id, job.image_ref, result.books)

        except Exception as e:
            with self._cond:
                job.status = JobStatus.FAILED
                job.error = str(e)
            self.logger.error(
                f"Scan failed: {job.image_ref}",
                job_id=job.id,
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            self._notify(self.on_error, job.snapshot(), PROCESSING_ERROR_MESSAGE)
            return

        with self._cond:
            job.status = JobStatus.COMPLETED
            job.books_found = len(result.books)

        self.logger.info(
            f"Scan complete: {job.image_ref}",
            job_id=job.id,
            books_found=job.books_found,
            **result.stats
        )
        self._notify(self.on_complete, job.snapshot(), result)

    def _publish(self):
        self._notify(self.on_update, self.snapshot())

    def _notify(self, callback, *args):
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            self.logger.error(
                "Queue observer raised",
                callback=getattr(callback, '__name__', repr(callback)),
                error=str(e),
            )
