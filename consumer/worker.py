"""Worker that drives one import job from its stored chunks to a terminal state."""
import asyncio
import logging
import time
from typing import Any, Dict, Optional
import redis.asyncio as redis

from database.repositories.job_repo import JobRepository, ImportStatus
from consumer.progress import JobProgress
from consumer.sink import ObjectSink
from consumer.throttle import RequestThrottle
from shared.config import Settings, settings
from shared.utils import error_message, generate_worker_id

logger = logging.getLogger(__name__)


class ImportWorker:
    """Feeds the items of an import job one by one into the downstream sink."""

    def __init__(
        self,
        redis_client: redis.Redis,
        sink: ObjectSink,
        throttle: Optional[RequestThrottle] = None,
        request_delay: Optional[int] = None,
        flush_every: Optional[int] = None,
        claim_ttl: Optional[int] = None
    ):
        self.redis = redis_client
        self.job_repo = JobRepository(redis_client)
        self.sink = sink
        self.throttle = throttle or RequestThrottle()
        self.request_delay = request_delay
        self.flush_every = flush_every or settings.progress_flush_interval
        self.claim_ttl = claim_ttl or settings.worker_claim_ttl
        # Seconds between claim refreshes while items are processed
        self.claim_refresh_interval = self.claim_ttl / 3

    async def process_job(self, job_id: str):
        """
        Process an import job to completion.

        Does nothing unless the job is in processing and not claimed by
        another worker. Job-level errors after the claim mark the job failed
        and are re-raised for the caller to log. Errors before it propagate
        without touching the record.
        """
        worker_id = generate_worker_id()

        job = await self.job_repo.get_job(job_id)
        if not self._is_runnable(job):
            self._log_not_runnable(job_id, job)
            return

        if not await self.job_repo.claim_job(job_id, worker_id, self.claim_ttl):
            logger.info(f"Job {job_id} is claimed by another worker, skipping")
            return

        try:
            # Another worker may have finished between the read and the claim
            job = await self.job_repo.get_job(job_id)
            if not self._is_runnable(job):
                self._log_not_runnable(job_id, job)
                return

            try:
                progress = await self._run(job_id, job, worker_id)
                await self.job_repo.complete_job(job_id, progress.processed, progress.failed)
            except Exception as e:
                logger.error(f"Error processing import job {job_id}: {e}")
                await self.job_repo.fail_job(job_id, error_message(e))
                raise

            logger.info(
                f"Import job {job_id} completed: {progress.processed} processed, {progress.failed} failed"
            )
        finally:
            await self.job_repo.release_job(job_id, worker_id)

    @staticmethod
    def _is_runnable(job: Optional[Dict[str, Any]]) -> bool:
        return bool(job) and job["status"] == ImportStatus.PROCESSING.value

    @staticmethod
    def _log_not_runnable(job_id: str, job: Optional[Dict[str, Any]]):
        if not job:
            logger.info(f"Job {job_id} does not exist")
        else:
            logger.info(f"Job {job_id} is {job['status']}, not processing, skipping")

    def _get_request_delay(self) -> int:
        """Per-item delay in milliseconds, read fresh for every job."""
        if self.request_delay is not None:
            return self.request_delay
        return Settings().api_request_delay

    async def _run(self, job_id: str, job: Dict[str, Any], worker_id: str) -> JobProgress:
        """Process every stored item, deleting the chunks unless cancelled."""
        total_chunks = job.get("totalChunks", 0)
        progress = JobProgress(
            total=job.get("total", 0),
            processed=job.get("processed", 0),
            failed=job.get("failed", 0),
            flush_every=self.flush_every
        )
        request_delay = self._get_request_delay()
        last_refresh = time.monotonic()

        try:
            objects = await self.job_repo.load_objects(job_id, total_chunks)

            # Counters already stored belong to a previous run of this job
            start = progress.attempted
            logger.info(
                f"Job {job_id}: Processing {len(objects) - start} objects individually"
                f" (delay {request_delay}ms)"
            )

            for index in range(start, len(objects)):
                await self._process_object(job_id, index, objects[index], progress)
                await self.throttle.pace(request_delay)

                if time.monotonic() - last_refresh >= self.claim_refresh_interval:
                    await self.job_repo.refresh_claim(job_id, worker_id, self.claim_ttl)
                    last_refresh = time.monotonic()
        except asyncio.CancelledError:
            logger.warning(f"Job {job_id} cancelled, chunks kept for a later run")
            raise
        except Exception:
            await self.job_repo.delete_chunks(job_id, total_chunks)
            raise

        await self.job_repo.delete_chunks(job_id, total_chunks)
        return progress

    async def _process_object(self, job_id: str, index: int, obj: Any, progress: JobProgress):
        """Send one object downstream and record the outcome."""
        try:
            await self.sink.create(obj)
        except Exception as e:
            logger.error(f"Job {job_id}: error processing object {index}: {e}")
            if progress.record_failure():
                await self.job_repo.update_progress(job_id, progress.processed, progress.failed)
            await self.job_repo.add_failure(job_id, index, obj, error_message(e))
            return

        if progress.record_success():
            await self.job_repo.update_progress(job_id, progress.processed, progress.failed)
