from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

import structlog

from integral_rush.db.session import dispose_engine

T = TypeVar("T")

logger = structlog.get_logger(__name__)


async def _run_isolated(job: Awaitable[T], *, job_name: str) -> T:
    # Each asyncio.run gets a new loop; pooled connections from the previous loop are unusable.
    await dispose_engine()
    structlog.contextvars.bind_contextvars(job_name=job_name)
    started = time.monotonic()
    try:
        return await job
    except Exception:
        logger.exception(
            "worker_job_failed",
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        raise
    finally:
        structlog.contextvars.unbind_contextvars("job_name")
        await dispose_engine()


def run_async_job(job: Awaitable[T], *, job_name: str) -> T:
    """Runs one coroutine job on a fresh event loop with a fresh database pool."""
    return asyncio.run(_run_isolated(job, job_name=job_name))
