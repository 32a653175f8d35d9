"""Command line entry point for re-driving import jobs by id."""
import argparse
import asyncio
import logging
import sys
from typing import List

from consumer.sink import HttpObjectSink
from consumer.worker import ImportWorker
from database.connection import DatabaseConnection
from shared.config import settings

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def run_jobs(job_ids: List[str], force: bool = False) -> int:
    """
    Run the worker for each job in turn and return the number that failed.

    With force, a claim left by a worker that is no longer running is
    released first instead of waiting for it to expire.
    """
    redis_client = await DatabaseConnection.init_redis()
    sink = HttpObjectSink()
    worker = ImportWorker(redis_client, sink)
    failures = 0

    try:
        for job_id in job_ids:
            logger.info(f"Processing import job {job_id}")
            try:
                if force:
                    await worker.job_repo.release_job(job_id)
                await worker.process_job(job_id)
            except Exception:
                logger.exception(f"Import job {job_id} failed")
                failures += 1
    finally:
        await sink.close()
        await DatabaseConnection.close_connections()
        logger.info("Consumer shutdown complete")

    return failures


def main(argv: List[str] = None) -> int:
    parser = argparse.ArgumentParser(description="Process stored import jobs")
    parser.add_argument("job_ids", nargs="+", metavar="JOB_ID", help="Import job identifier")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Release an existing worker claim before processing"
    )
    args = parser.parse_args(argv)

    failures = asyncio.run(run_jobs(args.job_ids, force=args.force))
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
