"""Re-drive command line tests."""
import pytest
from unittest.mock import AsyncMock

from consumer import consumer
from conftest import RecordingSink


@pytest.fixture
def cli_env(monkeypatch, fake_redis):
    """Point the command at the Redis double and a recording sink."""
    sink = RecordingSink()
    monkeypatch.setattr(consumer.DatabaseConnection, "init_redis", AsyncMock(return_value=fake_redis))
    monkeypatch.setattr(consumer.DatabaseConnection, "close_connections", AsyncMock())
    monkeypatch.setattr(consumer, "HttpObjectSink", lambda: sink)
    monkeypatch.setenv("API_REQUEST_DELAY", "0")
    return sink


class TestRunJobs:
    """Tests for run_jobs."""

    @pytest.mark.asyncio
    async def test_stale_claim_blocks_rerun(self, cli_env, job_repo, seed_job):
        await seed_job("job-1", [{"name": "Object"}])
        await job_repo.claim_job("job-1", "worker_dead", ttl=300)

        assert await consumer.run_jobs(["job-1"]) == 0

        assert cli_env.received == []
        assert (await job_repo.get_job("job-1"))["status"] == "processing"

    @pytest.mark.asyncio
    async def test_force_releases_stale_claim(self, cli_env, job_repo, seed_job):
        objects = [{"name": f"Object {i}"} for i in range(3)]
        await seed_job("job-1", objects)
        await job_repo.claim_job("job-1", "worker_dead", ttl=300)

        assert await consumer.run_jobs(["job-1"], force=True) == 0

        assert cli_env.received == objects
        assert (await job_repo.get_job("job-1"))["status"] == "completed"
        assert await job_repo.get_claim("job-1") is None

    @pytest.mark.asyncio
    async def test_failed_job_is_counted(self, cli_env, fake_redis, job_repo, seed_job):
        await seed_job("job-1", [{"name": f"Object {i}"} for i in range(150)])
        del fake_redis.strings["import:job-1:chunk:1"]

        assert await consumer.run_jobs(["job-1", "unknown"]) == 1

        assert (await job_repo.get_job("job-1"))["status"] == "failed"
        consumer.DatabaseConnection.close_connections.assert_awaited_once()


class TestMain:
    """Tests for argument parsing."""

    def test_force_flag(self, monkeypatch):
        run_jobs = AsyncMock(return_value=0)
        monkeypatch.setattr(consumer, "run_jobs", run_jobs)

        assert consumer.main(["--force", "job-1", "job-2"]) == 0

        run_jobs.assert_awaited_once_with(["job-1", "job-2"], force=True)

    def test_failures_set_exit_code(self, monkeypatch):
        monkeypatch.setattr(consumer, "run_jobs", AsyncMock(return_value=2))

        assert consumer.main(["job-1"]) == 1
