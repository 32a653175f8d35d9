# Schemas module
from .responses import (
    ImportStartedResponse,
    ImportStatusResponse,
    FailureListResponse,
    ErrorResponse
)

__all__ = [
    "ImportStartedResponse",
    "ImportStatusResponse",
    "FailureListResponse",
    "ErrorResponse"
]
