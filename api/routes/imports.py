"""Import routes for the REST API."""
import logging
from fastapi import APIRouter, HTTPException, Depends, Query, Request, status
import redis.asyncio as redis

from database.connection import get_redis
from database.repositories.job_repo import JobRepository
from api.services.ingestion import IngestionService, ImportRejected
from api.services.scheduler import JobScheduler, get_scheduler
from shared.utils import error_message
from api.schemas.responses import (
    ImportStartedResponse,
    ImportStatusResponse,
    FailureListResponse,
    ErrorResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/import", tags=["import"])

error_responses = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


@router.post("", response_model=ImportStartedResponse, responses=error_responses)
async def start_import(
    request: Request,
    redis_client: redis.Redis = Depends(get_redis),
    scheduler: JobScheduler = Depends(get_scheduler)
):
    """
    Start a bulk import.

    - Body must be JSON of the form {"objects": [...]}
    - Creates the job record before the body is read
    - Streams the body, enforcing the size limit
    - Stores the objects in chunks and starts background processing
    - Returns the job ID without waiting for processing
    """
    content_type = request.headers.get("content-type", "")
    if "application/json" not in content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Content type must be application/json"
        )

    job_repo = JobRepository(redis_client)
    service = IngestionService(job_repo, scheduler)
    job_id = None

    try:
        job_id = await service.create_job()
        total = await service.start_import(job_id, request.stream())
    except ImportRejected as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception("Import error")
        if job_id:
            try:
                await job_repo.reject_job(job_id, error_message(e))
            except Exception:
                logger.exception(f"Could not mark import job {job_id} as failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to start import job"
        )

    return ImportStartedResponse(job_id=job_id, total_objects=total)


@router.get("/{job_id}", response_model=ImportStatusResponse, responses={404: {"model": ErrorResponse}})
async def get_import_status(
    job_id: str,
    redis_client: redis.Redis = Depends(get_redis)
):
    """Get the current status and counters of an import job."""
    job = await JobRepository(redis_client).get_job(job_id)

    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Import job not found"
        )

    return ImportStatusResponse(job_id=job_id, **job)


@router.get("/{job_id}/failures", response_model=FailureListResponse, responses={404: {"model": ErrorResponse}})
async def get_import_failures(
    job_id: str,
    offset: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    redis_client: redis.Redis = Depends(get_redis)
):
    """Get the failure records of an import job, oldest first."""
    job_repo = JobRepository(redis_client)

    if not await job_repo.get_status(job_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Import job not found"
        )

    failures = await job_repo.get_failures(job_id, offset=offset, limit=limit)
    count = await job_repo.count_failures(job_id)

    return FailureListResponse(job_id=job_id, count=count, failures=failures)
