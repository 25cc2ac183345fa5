"""Job scheduler and rate gate tests."""

import asyncio
import time
from pathlib import Path

import pytest

from msi_splitter.config import SchedulerConfig
from msi_splitter.output.writer import SplitResult
from msi_splitter.scheduler import JobScheduler, JobStatus, RateLimitGate
from msi_splitter.storage import MemoryStore


class FakePipeline:
    """Fails the first ``failures[name]`` attempts of each file."""

    def __init__(self, failures=None, gate=None, delay=0.0):
        self.failures = dict(failures or {})
        self.calls = []
        self.gate = gate
        self.delay = delay
        self.active = 0
        self.max_active = 0

    async def process_file(self, path, store, on_progress=None):
        self.calls.append(path.name)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            await asyncio.sleep(self.delay)
            if on_progress is not None:
                on_progress(50, "halfway")
            if self.failures.get(path.name, 0) > 0:
                self.failures[path.name] -= 1
                raise RuntimeError(f"boom {path.name}")
            return SplitResult(success=1)
        finally:
            self.active -= 1


def _config(**kwargs):
    kwargs.setdefault("retry_delay_s", 0)
    kwargs.setdefault("rate_limit_interval_s", 0)
    return SchedulerConfig(**kwargs)


class TestJobScheduler:
    @pytest.mark.asyncio
    async def test_retries_then_completes(self):
        pipeline = FakePipeline(failures={"a.pdf": 2})
        scheduler = JobScheduler(_config(retry_attempts=3), pipeline, MemoryStore())
        scheduler.add_job(Path("a.pdf"))

        (job,) = await scheduler.run()

        assert job.status == JobStatus.COMPLETED
        assert job.attempts == 3
        assert job.progress == 100
        assert job.result.success == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries_mark_error_and_queue_moves_on(self):
        pipeline = FakePipeline(failures={"a.pdf": 5})
        scheduler = JobScheduler(_config(retry_attempts=2), pipeline, MemoryStore())
        scheduler.add_job(Path("a.pdf"))
        scheduler.add_job(Path("b.pdf"))

        first, second = await scheduler.run()

        assert first.status == JobStatus.ERROR
        assert first.error == "boom a.pdf"
        assert second.status == JobStatus.COMPLETED
        assert pipeline.calls == ["a.pdf", "a.pdf", "b.pdf"]

    @pytest.mark.asyncio
    async def test_max_concurrent(self):
        pipeline = FakePipeline(delay=0.01)
        scheduler = JobScheduler(_config(max_concurrent=2), pipeline, MemoryStore())
        for name in ("a.pdf", "b.pdf", "c.pdf", "d.pdf"):
            scheduler.add_job(Path(name))

        jobs = await scheduler.run()

        assert all(j.status == JobStatus.COMPLETED for j in jobs)
        assert pipeline.max_active == 2

    @pytest.mark.asyncio
    async def test_listeners_get_snapshots_until_unsubscribed(self):
        scheduler = JobScheduler(_config(), FakePipeline(), MemoryStore())
        seen = []
        unsubscribe = scheduler.subscribe(lambda jobs: seen.append([j.status for j in jobs]))

        assert seen == [[]]
        scheduler.add_job(Path("a.pdf"))
        await scheduler.run()
        assert JobStatus.PROCESSING in [s for snapshot in seen for s in snapshot]
        assert seen[-1] == [JobStatus.COMPLETED]

        count = len(seen)
        unsubscribe()
        scheduler.add_job(Path("b.pdf"))
        assert len(seen) == count

    @pytest.mark.asyncio
    async def test_snapshots_are_copies(self):
        scheduler = JobScheduler(_config(), FakePipeline(), MemoryStore())
        job = scheduler.add_job(Path("a.pdf"))

        snapshot = scheduler.get_job(job.id)
        snapshot.status = JobStatus.ERROR

        assert scheduler.get_job(job.id).status == JobStatus.PENDING

    @pytest.mark.asyncio
    async def test_reset_discards_in_flight_result(self):
        started = asyncio.Event()
        release = asyncio.Event()

        class BlockingPipeline:
            async def process_file(self, path, store, on_progress=None):
                started.set()
                await release.wait()
                return SplitResult(success=1)

        scheduler = JobScheduler(_config(), BlockingPipeline(), MemoryStore())
        seen = []
        scheduler.subscribe(lambda jobs: seen.extend(j.status for j in jobs))
        scheduler.add_job(Path("a.pdf"))

        task = asyncio.create_task(scheduler.run())
        await started.wait()
        scheduler.reset()
        release.set()
        jobs = await task

        assert jobs == []
        assert JobStatus.COMPLETED not in seen

    @pytest.mark.asyncio
    async def test_remove_and_clear_completed(self):
        scheduler = JobScheduler(_config(), FakePipeline(), MemoryStore())
        a = scheduler.add_job(Path("a.pdf"))
        b = scheduler.add_job(Path("b.pdf"))

        assert scheduler.remove_job(b.id)
        assert not scheduler.remove_job("missing")
        await scheduler.run()

        assert scheduler.clear_completed() == 1
        assert scheduler.get_job(a.id) is None
        assert scheduler.get_jobs() == []


class TestRateLimitGate:
    @pytest.mark.asyncio
    async def test_starts_are_spaced(self):
        gate = RateLimitGate(0.05)
        starts = []

        async def call():
            await gate.wait()
            starts.append(time.monotonic())

        await asyncio.gather(*(call() for _ in range(3)))

        gaps = [b - a for a, b in zip(starts, starts[1:])]
        assert all(gap >= 0.045 for gap in gaps)

    @pytest.mark.asyncio
    async def test_first_call_is_immediate(self):
        gate = RateLimitGate(10)
        t0 = time.monotonic()

        async with gate:
            pass

        assert time.monotonic() - t0 < 1

    @pytest.mark.asyncio
    async def test_shared_across_jobs(self):
        gate = RateLimitGate(0.05)
        pipeline = FakePipeline(gate=gate)
        scheduler = JobScheduler(_config(max_concurrent=3), pipeline, MemoryStore())
        for name in ("a.pdf", "b.pdf", "c.pdf"):
            scheduler.add_job(Path(name))

        t0 = time.monotonic()
        await scheduler.run()

        assert time.monotonic() - t0 >= 0.09
