"""Import job model definitions."""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from database.repositories.job_repo import ImportStatus


class ImportJobModel(BaseModel):
    """Import job record as stored in the job hash."""
    status: ImportStatus
    created_at: Optional[int] = None
    completed_at: Optional[int] = None
    failed_at: Optional[int] = None
    total: int = 0
    total_chunks: int = 0
    processed: int = 0
    failed: int = 0
    error: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FailureRecordModel(BaseModel):
    """One item the downstream API rejected."""
    index: int = Field(..., description="Position of the item in the submitted objects")
    object: Any = Field(None, description="The submitted item")
    error: str = Field(..., description="Error message")
    timestamp: int = Field(..., description="Failure time in milliseconds since the epoch")
