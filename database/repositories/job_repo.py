"""Import job repository backed by Redis hashes, strings and lists."""
import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence
import redis.asyncio as redis
from shared.config import settings
from shared.utils import chunked, now_ms

logger = logging.getLogger(__name__)


class ImportStatus(str, Enum):
    """Import job status values as stored in the job hash."""
    RECEIVING = "receiving"
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# Hash fields holding integers; everything else is kept as a string.
_INT_FIELDS = ("createdAt", "completedAt", "failedAt", "total", "totalChunks", "processed", "failed")


class MissingChunkError(Exception):
    """Raised when a chunk record of a job cannot be found."""

    def __init__(self, job_id: str, chunk_index: int):
        super().__init__(f"Chunk {chunk_index} not found for job {job_id}")
        self.job_id = job_id
        self.chunk_index = chunk_index


class JobRepository:
    """
    Repository for import job state.

    Key layout, under the configured prefix:
      {prefix}:{job_id}                job record (hash)
      {prefix}:{job_id}:chunk:{n}      chunk record (JSON array string)
      {prefix}:{job_id}:failures       failure records (list of JSON objects)
      {prefix}:{job_id}:worker         claim held by the worker driving the job
    """

    def __init__(self, redis_client: redis.Redis, prefix: Optional[str] = None):
        self.redis = redis_client
        self.prefix = prefix or settings.redis_key_prefix

    def job_key(self, job_id: str) -> str:
        return f"{self.prefix}:{job_id}"

    def chunk_key(self, job_id: str, chunk_index: int) -> str:
        return f"{self.prefix}:{job_id}:chunk:{chunk_index}"

    def failures_key(self, job_id: str) -> str:
        return f"{self.prefix}:{job_id}:failures"

    def claim_key(self, job_id: str) -> str:
        return f"{self.prefix}:{job_id}:worker"

    # Job record

    async def create_job(self, job_id: str) -> None:
        """Write the initial job record in ``receiving`` status."""
        await self.redis.hset(self.job_key(job_id), mapping={
            "status": ImportStatus.RECEIVING.value,
            "createdAt": now_ms()
        })

    async def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Get a job record with integer fields parsed, or None if missing."""
        data = await self.redis.hgetall(self.job_key(job_id))
        if not data:
            return None

        job: Dict[str, Any] = dict(data)
        for field in _INT_FIELDS:
            if field in job:
                job[field] = int(job[field])
        return job

    async def get_status(self, job_id: str) -> Optional[ImportStatus]:
        """Get only the status of a job."""
        value = await self.redis.hget(self.job_key(job_id), "status")
        return ImportStatus(value) if value else None

    async def mark_pending(self, job_id: str, total: int) -> None:
        """Record the item count and reset counters once the payload is accepted."""
        await self.redis.hset(self.job_key(job_id), mapping={
            "status": ImportStatus.PENDING.value,
            "total": total,
            "processed": 0,
            "failed": 0
        })

    async def mark_processing(self, job_id: str) -> None:
        """Mark a job as handed off to the worker."""
        await self.redis.hset(self.job_key(job_id), "status", ImportStatus.PROCESSING.value)

    async def reject_job(self, job_id: str, error: str) -> None:
        """Mark a job failed before processing started."""
        await self.redis.hset(self.job_key(job_id), mapping={
            "status": ImportStatus.FAILED.value,
            "error": error
        })

    async def update_progress(self, job_id: str, processed: int, failed: int) -> None:
        """Flush the worker's counters to the job record."""
        await self.redis.hset(self.job_key(job_id), mapping={
            "processed": processed,
            "failed": failed
        })

    async def complete_job(self, job_id: str, processed: int, failed: int) -> None:
        """Mark a job as completed with its final counters."""
        await self.redis.hset(self.job_key(job_id), mapping={
            "status": ImportStatus.COMPLETED.value,
            "completedAt": now_ms(),
            "processed": processed,
            "failed": failed
        })

    async def fail_job(self, job_id: str, error: str) -> None:
        """Mark a job as failed by a job-level error."""
        await self.redis.hset(self.job_key(job_id), mapping={
            "status": ImportStatus.FAILED.value,
            "error": error,
            "failedAt": now_ms()
        })

    # Chunk records

    async def save_chunks(self, job_id: str, objects: Sequence[Any], chunk_size: Optional[int] = None) -> int:
        """Store objects as ordered chunk records and return the chunk count."""
        size = chunk_size or settings.import_chunk_size
        total_chunks = 0

        for index, chunk in enumerate(chunked(objects, size)):
            await self.redis.set(self.chunk_key(job_id, index), json.dumps(chunk))
            total_chunks += 1

        await self.redis.hset(self.job_key(job_id), "totalChunks", total_chunks)
        return total_chunks

    async def get_chunk(self, job_id: str, chunk_index: int) -> Optional[List[Any]]:
        """Get the items of one chunk, or None if the chunk is missing."""
        data = await self.redis.get(self.chunk_key(job_id, chunk_index))
        if data is None:
            return None
        return json.loads(data)

    async def load_objects(self, job_id: str, total_chunks: int) -> List[Any]:
        """Concatenate every chunk of a job in index order."""
        objects: List[Any] = []
        for chunk_index in range(total_chunks):
            chunk = await self.get_chunk(job_id, chunk_index)
            if chunk is None:
                raise MissingChunkError(job_id, chunk_index)
            objects.extend(chunk)
        return objects

    async def delete_chunks(self, job_id: str, total_chunks: int) -> int:
        """Delete all chunk records of a job and return how many existed."""
        if total_chunks <= 0:
            return 0
        keys = [self.chunk_key(job_id, index) for index in range(total_chunks)]
        return await self.redis.delete(*keys)

    # Failure records

    async def add_failure(self, job_id: str, index: int, obj: Any, error: str) -> None:
        """Append a failure record for one item."""
        record = {
            "index": index,
            "object": obj,
            "error": error,
            "timestamp": now_ms()
        }
        await self.redis.rpush(self.failures_key(job_id), json.dumps(record))

    async def get_failures(self, job_id: str, offset: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        """Get a page of failure records in the order they were written."""
        if limit <= 0:
            return []
        entries = await self.redis.lrange(self.failures_key(job_id), offset, offset + limit - 1)
        return [json.loads(entry) for entry in entries]

    async def count_failures(self, job_id: str) -> int:
        """Number of failure records stored for a job."""
        return await self.redis.llen(self.failures_key(job_id))

    # Worker claim

    async def claim_job(self, job_id: str, worker_id: str, ttl: int) -> bool:
        """
        Claim a job for one worker.

        The claim expires after ttl seconds so that a job whose worker died
        can be run again. Returns False if another worker holds it.
        """
        return bool(await self.redis.set(self.claim_key(job_id), worker_id, nx=True, ex=ttl))

    async def get_claim(self, job_id: str) -> Optional[str]:
        """ID of the worker holding the claim on a job, if any."""
        return await self.redis.get(self.claim_key(job_id))

    async def refresh_claim(self, job_id: str, worker_id: str, ttl: int) -> bool:
        """Extend a claim this worker still holds. Returns False if it was lost."""
        if await self.get_claim(job_id) != worker_id:
            logger.warning(f"Worker {worker_id} lost its claim on job {job_id}")
            return False
        return bool(await self.redis.expire(self.claim_key(job_id), ttl))

    async def release_job(self, job_id: str, worker_id: Optional[str] = None) -> None:
        """Release the claim on a job, only if worker_id still holds it when given."""
        if worker_id is not None and await self.get_claim(job_id) != worker_id:
            return
        await self.redis.delete(self.claim_key(job_id))
