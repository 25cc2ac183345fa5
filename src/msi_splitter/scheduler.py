"""Job queue for batches of source PDFs.

Jobs run through a shared pipeline with a bounded number in flight. Failed
jobs are retried after a fixed delay, then marked ERROR while the queue moves
on. Classifier calls from all jobs pass one RateLimitGate.

Usage:
    scheduler = JobScheduler(config.scheduler, pipeline, store)
    scheduler.add_job(Path("bundle.pdf"))
    unsubscribe = scheduler.subscribe(print_jobs)
    await scheduler.run()
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from loguru import logger

from msi_splitter.config import SchedulerConfig

if TYPE_CHECKING:
    from msi_splitter.output.writer import SplitResult
    from msi_splitter.pipeline import SplitPipeline
    from msi_splitter.storage.base import DestinationStore


class RateLimitGate:
    """Global minimum interval between operation starts.

    Waiters are served in arrival order; the wait happens while holding the
    lock so that starts are spaced at least ``interval`` seconds apart.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic):
        self.interval = interval
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_start: Optional[float] = None

    async def wait(self) -> None:
        async with self._lock:
            if self._last_start is not None:
                remaining = self.interval - (self._clock() - self._last_start)
                if remaining > 0:
                    logger.debug(f"Rate limit: waiting {remaining:.1f}s")
                    await asyncio.sleep(remaining)
            self._last_start = self._clock()

    async def __aenter__(self) -> RateLimitGate:
        await self.wait()
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class Job:
    """One queued source file."""

    path: Path
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:9])
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    message: str = ""
    attempts: int = 0
    error: Optional[str] = None
    result: Optional[SplitResult] = None
    added_at: float = field(default_factory=time.time)
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @property
    def name(self) -> str:
        return self.path.name


JobListener = Callable[[List[Job]], None]


class JobScheduler:
    """Owns the job list, its workers and its listeners."""

    def __init__(self, config: SchedulerConfig, pipeline: SplitPipeline, store: DestinationStore):
        self.config = config
        self.pipeline = pipeline
        self.store = store
        self._jobs: Dict[str, Job] = {}
        self._listeners: List[JobListener] = []
        self._generation = 0
        self._running: set[str] = set()

    # Listeners

    def subscribe(self, listener: JobListener) -> Callable[[], None]:
        """Register a listener; it is called immediately and on every change.

        Returns:
            Callable that removes the listener.
        """
        self._listeners.append(listener)
        listener(self.get_jobs())

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.get_jobs()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning(f"Job listener failed: {e}")

    # Queue management

    def add_job(self, path: Path) -> Job:
        job = Job(path=Path(path))
        self._jobs[job.id] = job
        logger.info(f"Queued {job.name} ({job.id})")
        self._notify()
        return job

    def remove_job(self, job_id: str) -> bool:
        """Remove a job that is not currently processing."""
        job = self._jobs.get(job_id)
        if job is None or job.status == JobStatus.PROCESSING:
            return False
        del self._jobs[job_id]
        self._notify()
        return True

    def get_job(self, job_id: str) -> Optional[Job]:
        job = self._jobs.get(job_id)
        return replace(job) if job is not None else None

    def get_jobs(self) -> List[Job]:
        """Snapshot copies, in insertion order."""
        return [replace(job) for job in self._jobs.values()]

    def clear_completed(self) -> int:
        done = [k for k, j in self._jobs.items() if j.status == JobStatus.COMPLETED]
        for key in done:
            del self._jobs[key]
        if done:
            self._notify()
        return len(done)

    def reset(self) -> None:
        """Drop every job. Results of jobs still in flight are discarded."""
        self._generation += 1
        self._jobs.clear()
        self._running.clear()
        logger.info("Job queue reset")
        self._notify()

    # Processing

    def _next_pending(self) -> Optional[Job]:
        for job in self._jobs.values():
            if job.status == JobStatus.PENDING and job.id not in self._running:
                return job
        return None

    def _update(self, job: Job, generation: int, **changes) -> bool:
        """Apply changes unless the queue was reset since the job started."""
        if generation != self._generation or self._jobs.get(job.id) is not job:
            return False
        for key, value in changes.items():
            setattr(job, key, value)
        self._notify()
        return True

    async def _process(self, job: Job, generation: int) -> None:
        self._update(job, generation, status=JobStatus.PROCESSING, started_at=time.time(), progress=0)

        def on_progress(percent: int, message: str) -> None:
            self._update(job, generation, progress=percent, message=message)

        attempts = self.config.retry_attempts
        last_error = ""
        for attempt in range(1, attempts + 1):
            if generation != self._generation:
                return
            job.attempts = attempt
            try:
                result = await self.pipeline.process_file(job.path, self.store, on_progress=on_progress)
            except Exception as e:
                last_error = str(e) or type(e).__name__
                logger.warning(f"{job.name}: attempt {attempt}/{attempts} failed: {last_error}")
                if attempt < attempts:
                    await asyncio.sleep(self.config.retry_delay_s)
                continue

            if self._update(
                job,
                generation,
                status=JobStatus.COMPLETED,
                progress=100,
                result=result,
                error=None,
                message=f"{result.success} saved, {result.failed} failed",
                finished_at=time.time(),
            ):
                logger.success(f"{job.name}: completed")
            else:
                logger.info(f"{job.name}: result discarded after reset")
            return

        if self._update(job, generation, status=JobStatus.ERROR, error=last_error, finished_at=time.time()):
            logger.error(f"{job.name}: giving up after {attempts} attempt(s): {last_error}")

    async def _worker(self) -> None:
        while True:
            job = self._next_pending()
            if job is None:
                return
            self._running.add(job.id)
            generation = self._generation
            try:
                await self._process(job, generation)
            finally:
                self._running.discard(job.id)

    async def run(self) -> List[Job]:
        """Process pending jobs until none are left.

        Returns:
            Snapshot of all jobs when the queue is idle.
        """
        workers = [asyncio.create_task(self._worker()) for _ in range(self.config.max_concurrent)]
        await asyncio.gather(*workers)
        return self.get_jobs()


__all__ = ["Job", "JobListener", "JobScheduler", "JobStatus", "RateLimitGate"]
