"""In-memory progress counters for a single import job."""
from dataclasses import dataclass


@dataclass
class JobProgress:
    """
    Counters owned by the worker driving one job.

    ``record_success`` and ``record_failure`` return whether the counters
    should be flushed to the job record now: successes are batched every
    ``flush_every`` items (and at the last item), failures flush immediately.
    """
    total: int
    processed: int = 0
    failed: int = 0
    flush_every: int = 10

    def record_success(self) -> bool:
        self.processed += 1
        return self.processed % self.flush_every == 0 or self.processed == self.total

    def record_failure(self) -> bool:
        self.failed += 1
        return True

    @property
    def attempted(self) -> int:
        return self.processed + self.failed
