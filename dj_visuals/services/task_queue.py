"""In-process job queue using asyncio.

Delivery is at-least-once: the same job id may be enqueued repeatedly (by
the create endpoint, by a client retrying ``/process``, or by startup
recovery), and JobProcessor turns every delivery after the first into a
no-op until the job's owner has been silent past its generator timeout.
"""

import asyncio
import logging
from typing import List

from dj_visuals.models.job import JobStatus
from dj_visuals.services.job_manager import JobManager
from dj_visuals.services.processor import JobProcessor
from dj_visuals.utils.errors import JobNotFoundError

logger = logging.getLogger(__name__)


class JobQueue:
    """Runs JobProcessor for queued job ids on a small pool of asyncio workers."""

    def __init__(self, processor: JobProcessor, worker_count: int = 2) -> None:
        self.processor = processor
        self.worker_count = max(1, worker_count)
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._workers: List[asyncio.Task] = []
        self._running = False

    async def enqueue(self, job_id: str) -> None:
        await self._queue.put(job_id)
        logger.debug(f"Enqueued job {job_id} ({self._queue.qsize()} waiting)")

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._workers = [
            asyncio.create_task(self._worker_loop(i)) for i in range(self.worker_count)
        ]
        logger.info(f"Job queue started with {self.worker_count} worker(s)")

    async def stop(self) -> None:
        self._running = False
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("Job queue stopped")

    async def requeue_pending(self, manager: JobManager, limit: int = 100) -> int:
        """
        Enqueue jobs that never reached a result.

        Covers pending jobs and processing jobs with no provider task; the
        processor only reruns the latter once their owner has gone silent.
        """
        pending = await manager.list_by_status(JobStatus.PENDING, limit=limit)
        claimed = await manager.list_by_status(JobStatus.PROCESSING, limit=limit)
        jobs = pending + [job for job in claimed if not job.task_id]
        for job in jobs:
            await self.enqueue(job.id)
        if jobs:
            logger.info(f"Requeued {len(jobs)} unfinished job(s)")
        return len(jobs)

    def start_recovery(self, manager: JobManager, interval: float) -> None:
        """Re-run requeue_pending every ``interval`` seconds until stopped."""
        self._workers.append(asyncio.create_task(self._recovery_loop(manager, interval)))

    async def _recovery_loop(self, manager: JobManager, interval: float) -> None:
        while self._running:
            await asyncio.sleep(interval)
            try:
                await self.requeue_pending(manager)
            except Exception:
                logger.exception("Recovery sweep failed")

    async def _worker_loop(self, worker_id: int) -> None:
        while self._running:
            try:
                job_id = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            try:
                await self.processor.process(job_id)
            except JobNotFoundError:
                logger.warning(f"Worker {worker_id}: job {job_id} no longer exists")
            except Exception:
                logger.exception(f"Worker {worker_id}: processing job {job_id} crashed")
            finally:
                self._queue.task_done()
