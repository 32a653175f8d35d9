"""Scheduler that runs import workers in the background of the API process."""
import asyncio
import logging
from typing import Dict, Optional
from fastapi import Request

from consumer.worker import ImportWorker

logger = logging.getLogger(__name__)


class JobScheduler:
    """Starts one background task per import job and logs how each one ends."""

    def __init__(self, worker: ImportWorker):
        self.worker = worker
        self._tasks: Dict[str, asyncio.Task] = {}

    def schedule(self, job_id: str) -> asyncio.Task:
        """Start processing a job without waiting for it."""
        running = self.get_task(job_id)
        if running and not running.done():
            logger.info(f"Job {job_id} already running, not scheduling again")
            return running

        task = asyncio.create_task(self.worker.process_job(job_id), name=f"import-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(self._on_done(job_id))
        return task

    def _on_done(self, job_id: str):
        def _callback(task: asyncio.Task) -> None:
            if self._tasks.get(job_id) is task:
                del self._tasks[job_id]

            if task.cancelled():
                logger.warning(f"Import job {job_id} was cancelled")
                return

            exc = task.exception()
            if exc is not None:
                logger.error(f"Error processing import job {job_id}", exc_info=exc)

        return _callback

    def get_task(self, job_id: str) -> Optional[asyncio.Task]:
        """The task running a job, if one was scheduled and has not finished."""
        return self._tasks.get(job_id)

    @property
    def active_jobs(self) -> int:
        """Number of jobs currently running in this process."""
        return len(self._tasks)

    async def shutdown(self):
        """Cancel running jobs and wait for them to stop."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()


def get_scheduler(request: Request) -> JobScheduler:
    """Dependency for getting the application's job scheduler."""
    return request.app.state.scheduler
