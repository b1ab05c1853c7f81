"""Background execution of section drafting jobs."""

import asyncio
import logging
import uuid
from typing import Awaitable, Callable, Dict, List, Optional

from guidesmith.schemas import DRAFT_STATUS_ORDER, SectionDraftJob, SectionWriteRequest, utcnow_iso

logger = logging.getLogger(__name__)

SectionWriter = Callable[[SectionWriteRequest], Awaitable[str]]


class SectionDraftQueue:
    """In-memory registry of drafting jobs with a pool of asyncio workers.

    ``queue_job`` only records the job and hands its id to the work queue;
    workers pick it up on a later turn of the event loop. Each job gets a
    future that resolves with its terminal record, which is how completion is
    reported back to anyone waiting on it.
    """

    def __init__(self, writer: SectionWriter, workers: int = 2):
        self._writer = writer
        self._worker_count = workers
        self._jobs: Dict[str, SectionDraftJob] = {}
        self._session_jobs: Dict[str, List[str]] = {}
        self._done: Dict[str, asyncio.Future] = {}
        self._queue: Optional[asyncio.Queue] = None
        self._workers: List[asyncio.Task] = []

    def get_jobs(self, session_id: str) -> List[SectionDraftJob]:
        """Jobs for a session, most recent first. Empty for unknown sessions."""
        return [self._jobs[job_id] for job_id in self._session_jobs.get(session_id, [])]

    def get_job(self, job_id: str) -> Optional[SectionDraftJob]:
        return self._jobs.get(job_id)

    def queue_job(self, session_id: str, request: SectionWriteRequest) -> SectionDraftJob:
        self.start()
        now = utcnow_iso()
        job = SectionDraftJob(
            id=str(uuid.uuid4()),
            session_id=session_id,
            request=request,
            status="queued",
            requested_at=now,
            updated_at=now,
        )

        self._jobs[job.id] = job
        self._session_jobs.setdefault(session_id, []).insert(0, job.id)
        self._done[job.id] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait(job.id)
        return job

    async def wait_for(self, job_id: str) -> SectionDraftJob:
        """Wait until the job reaches ``completed`` or ``failed``."""
        return await asyncio.shield(self._done[job_id])

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        if self._queue is not None:
            await self._queue.join()

    def start(self) -> None:
        """Start the worker pool if it is not running. Needs a running event loop."""
        if self._workers:
            return
        if self._queue is None:
            self._queue = asyncio.Queue()
        self._workers = [
            asyncio.create_task(self._worker(index), name=f"section-draft-worker-{index}")
            for index in range(self._worker_count)
        ]
        logger.info(f"Started {self._worker_count} section draft workers")

    async def stop(self) -> None:
        workers, self._workers = self._workers, []
        for task in workers:
            task.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        if workers:
            logger.info("Section draft workers stopped")

    async def _worker(self, index: int) -> None:
        while True:
            job_id = await self._queue.get()
            try:
                await self._run_job(job_id)
            except Exception as e:
                logger.error(f"Draft worker {index} error for job {job_id}: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    async def _run_job(self, job_id: str) -> None:
        job = self._transition(job_id, "in_progress")
        section_id = job.request.section_id

        try:
            output_path = await self._writer(job.request)
        except Exception as e:
            message = str(e) or "Unknown error"
            job = self._transition(job_id, "failed", error=message)
            logger.error(
                "Section draft failed",
                extra={"job_id": job_id, "section_id": section_id, "error": message},
            )
        else:
            job = self._transition(job_id, "completed", output_path=output_path)
            logger.info(
                "Section draft completed",
                extra={"job_id": job_id, "section_id": section_id, "output_path": output_path},
            )

        done = self._done[job_id]
        if not done.done():
            done.set_result(job)

    def _transition(self, job_id: str, status: str, **changes) -> SectionDraftJob:
        current = self._jobs[job_id]
        if DRAFT_STATUS_ORDER[status] <= DRAFT_STATUS_ORDER[current.status]:
            raise ValueError(f"Invalid draft transition {current.status} -> {status} for job {job_id}")
        updated = current.model_copy(update={**changes, "status": status, "updated_at": utcnow_iso()})
        self._jobs[job_id] = updated
        return updated
