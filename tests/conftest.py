"""Pytest configuration and fixtures."""
import json
from typing import Any, Dict, List

import pytest

from database.repositories.job_repo import JobRepository


class FakeRedis:
    """In-memory stand-in for the async Redis commands the repository uses.

    Values are stored as strings, as a client with decode_responses=True
    returns them.
    """

    def __init__(self):
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.strings: Dict[str, str] = {}
        self.lists: Dict[str, List[str]] = {}
        self.expiry: Dict[str, float] = {}
        self.clock = 0.0

    def advance(self, seconds: float):
        """Move the clock forward, dropping keys whose expiry has passed."""
        self.clock += seconds
        for name, deadline in list(self.expiry.items()):
            if deadline <= self.clock:
                del self.expiry[name]
                self.strings.pop(name, None)

    async def hset(self, name, key=None, value=None, mapping=None):
        data = self.hashes.setdefault(name, {})
        fields = dict(mapping or {})
        if key is not None:
            fields[key] = value
        added = len([f for f in fields if f not in data])
        for field, field_value in fields.items():
            data[field] = str(field_value)
        return added

    async def hget(self, name, key):
        return self.hashes.get(name, {}).get(key)

    async def hgetall(self, name):
        return dict(self.hashes.get(name, {}))

    async def set(self, name, value, ex=None, nx=False):
        if nx and self._exists(name):
            return None
        self.strings[name] = str(value)
        if ex is not None:
            self.expiry[name] = self.clock + ex
        else:
            self.expiry.pop(name, None)
        return True

    async def expire(self, name, seconds):
        if not self._exists(name):
            return False
        self.expiry[name] = self.clock + seconds
        return True

    async def get(self, name):
        return self.strings.get(name)

    async def delete(self, *names):
        removed = 0
        for name in names:
            for store in (self.hashes, self.strings, self.lists):
                if name in store:
                    del store[name]
                    removed += 1
            self.expiry.pop(name, None)
        return removed

    async def rpush(self, name, *values):
        items = self.lists.setdefault(name, [])
        items.extend(str(v) for v in values)
        return len(items)

    async def lrange(self, name, start, end):
        items = self.lists.get(name, [])
        if end == -1:
            return items[start:]
        return items[start:end + 1]

    async def llen(self, name):
        return len(self.lists.get(name, []))

    def _exists(self, name):
        return name in self.hashes or name in self.strings or name in self.lists

    def chunk_keys(self, job_id: str) -> List[str]:
        return sorted(k for k in self.strings if k.startswith(f"import:{job_id}:chunk:"))


class RecordingSink:
    """Sink that records every item and fails for the configured indexes."""

    def __init__(self, fail_items=None, error: str = "API responded with status 500"):
        self.fail_items = fail_items or []
        self.error = error
        self.received: List[Any] = []

    async def create(self, item: Any) -> None:
        self.received.append(item)
        if item in self.fail_items:
            raise RuntimeError(self.error)

    async def close(self):
        pass


@pytest.fixture
def fake_redis():
    """Create an in-memory Redis double."""
    return FakeRedis()


@pytest.fixture
def job_repo(fake_redis):
    """Create a job repository on the Redis double."""
    return JobRepository(fake_redis, prefix="import")


@pytest.fixture
def recording_sink():
    """Create a sink that accepts every item."""
    return RecordingSink()


@pytest.fixture
def sample_objects():
    """Create 250 sample import items."""
    return [
        {"name": f"Object {i}", "modelUuid": "model-001", "properties": [{"key": "index", "value": i}]}
        for i in range(250)
    ]


@pytest.fixture
def import_payload(sample_objects):
    """Create a JSON request body for the sample items."""
    return json.dumps({"objects": sample_objects}).encode("utf-8")


@pytest.fixture
def seed_job(job_repo):
    """Store a job the way the ingestion endpoint leaves it for the worker."""
    async def _seed(job_id: str, objects: List[Any], chunk_size: int = 100):
        await job_repo.create_job(job_id)
        await job_repo.mark_pending(job_id, len(objects))
        await job_repo.save_chunks(job_id, objects, chunk_size)
        await job_repo.mark_processing(job_id)

    return _seed
