"""Shared utility functions."""
import time
import uuid
from typing import Any, Iterator, List, Sequence


def generate_job_id() -> str:
    """Generate a unique import job ID."""
    return str(uuid.uuid4())


def generate_worker_id() -> str:
    """Generate an identifier for one worker invocation."""
    return f"worker_{uuid.uuid4().hex[:12]}"


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def chunked(items: Sequence[Any], size: int) -> Iterator[List[Any]]:
    """Yield consecutive slices of at most ``size`` items, in order."""
    if size < 1:
        raise ValueError("Chunk size must be at least 1")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def error_message(exc: BaseException) -> str:
    """Message text for an exception, falling back to its type name."""
    return str(exc) or exc.__class__.__name__
