#!/usr/bin/env python
"""Run the Arq worker."""

import asyncio
import logging

from arq.worker import Worker

from question_bank.config import get_settings
from question_bank.workers.tasks import WorkerSettings

logging.basicConfig(level=get_settings().log_level.upper())


async def main():
    """Run the worker."""
    worker = Worker(
        functions=WorkerSettings.functions,
        cron_jobs=WorkerSettings.cron_jobs,
        on_startup=WorkerSettings.on_startup,
        on_shutdown=WorkerSettings.on_shutdown,
        redis_settings=WorkerSettings.redis_settings,
        max_jobs=WorkerSettings.max_jobs,
        job_timeout=WorkerSettings.job_timeout,
        keep_result=WorkerSettings.keep_result,
    )
    await worker.main()


if __name__ == "__main__":
    asyncio.run(main())
