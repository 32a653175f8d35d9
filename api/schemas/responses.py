"""Response schemas for API endpoints."""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from api.models.job import ImportJobModel, FailureRecordModel


class ImportStartedResponse(BaseModel):
    """Response schema for an accepted import."""
    job_id: str = Field(..., description="Unique job identifier")
    status: str = Field(default="started", description="Handoff status")
    message: str = Field(default="Import job started successfully")
    total_objects: int = Field(..., description="Number of submitted objects")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ImportStatusResponse(ImportJobModel):
    """Response schema for import job status."""
    job_id: str = Field(..., description="Unique job identifier")


class FailureListResponse(BaseModel):
    """Response schema for a page of failure records."""
    job_id: str = Field(..., description="Unique job identifier")
    count: int = Field(..., description="Total number of failure records for the job")
    failures: List[FailureRecordModel] = Field(default_factory=list)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """Schema for error responses."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Detailed error information")
