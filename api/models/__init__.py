# Models module
from .job import ImportJobModel, FailureRecordModel

__all__ = ["ImportJobModel", "FailureRecordModel"]
