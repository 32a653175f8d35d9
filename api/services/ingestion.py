"""Ingestion service that turns an upload into a stored, scheduled import job."""
import json
import logging
from typing import Any, AsyncIterator, List, Optional

from database.repositories.job_repo import JobRepository
from api.services.scheduler import JobScheduler
from shared.config import settings
from shared.utils import generate_job_id

logger = logging.getLogger(__name__)

PAYLOAD_TOO_LARGE = "Payload too large (exceeds 200MB)"
UNREADABLE_BODY = "Request body could not be read"
INVALID_JSON = "Invalid JSON format"
INVALID_SHAPE = "Invalid data: objects must be a non-empty array"


class ImportRejected(Exception):
    """An upload refused for a client-side reason."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class IngestionService:
    """Reads, validates and stores an import payload, then hands it to the scheduler."""

    def __init__(
        self,
        job_repo: JobRepository,
        scheduler: JobScheduler,
        max_payload_bytes: Optional[int] = None,
        chunk_size: Optional[int] = None
    ):
        self.job_repo = job_repo
        self.scheduler = scheduler
        self.max_payload_bytes = max_payload_bytes or settings.import_max_payload_bytes
        self.chunk_size = chunk_size or settings.import_chunk_size

    async def create_job(self) -> str:
        """Create the job record before any of the body is read."""
        job_id = generate_job_id()
        await self.job_repo.create_job(job_id)
        return job_id

    async def start_import(self, job_id: str, body: AsyncIterator[bytes]) -> int:
        """
        Store the payload of an already created job and schedule it.

        Returns the number of submitted objects. Raises ImportRejected after
        marking the job failed when the payload is refused.
        """
        try:
            raw = await self._read_body(body)
            objects = self._parse_objects(raw)
        except ImportRejected as e:
            logger.warning(f"Import job {job_id} rejected: {e.message}")
            await self.job_repo.reject_job(job_id, e.message)
            raise

        total = len(objects)
        await self.job_repo.mark_pending(job_id, total)
        total_chunks = await self.job_repo.save_chunks(job_id, objects, self.chunk_size)

        await self.job_repo.mark_processing(job_id)
        self.scheduler.schedule(job_id)

        logger.info(f"Import job {job_id} started: {total} objects in {total_chunks} chunks")
        return total

    async def _read_body(self, body: AsyncIterator[bytes]) -> bytes:
        """Accumulate the body, aborting as soon as it exceeds the size limit."""
        parts: List[bytes] = []
        total_size = 0

        try:
            async for part in body:
                total_size += len(part)
                if total_size > self.max_payload_bytes:
                    raise ImportRejected(413, PAYLOAD_TOO_LARGE)
                parts.append(part)
        except ImportRejected:
            raise
        except Exception as e:
            logger.warning(f"Failed to read request body: {e}")
            raise ImportRejected(400, UNREADABLE_BODY) from e

        return b"".join(parts)

    @staticmethod
    def _parse_objects(raw: bytes) -> List[Any]:
        try:
            data = json.loads(raw.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ImportRejected(400, INVALID_JSON) from e

        objects = data.get("objects") if isinstance(data, dict) else None
        if not isinstance(objects, list) or not objects:
            raise ImportRejected(400, INVALID_SHAPE)
        return objects
