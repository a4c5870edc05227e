from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from integral_rush.core.config import get_settings
from integral_rush.db.session import SessionLocal
from integral_rush.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

CELERY_PING_TIMEOUT_SECONDS = 1.0


def _check_result(*, ok: bool, **details: Any) -> dict[str, Any]:
    return {"status": "ok" if ok else "failed", **details}


async def _check_database() -> dict[str, Any]:
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        return _check_result(ok=False, error=str(exc))
    return _check_result(ok=True)


async def _check_redis() -> dict[str, Any]:
    client = Redis.from_url(get_settings().redis_url)
    try:
        pong = await client.ping()
    except Exception as exc:
        return _check_result(ok=False, error=str(exc))
    finally:
        await client.aclose()
    if pong is not True:
        return _check_result(ok=False, error=f"unexpected ping reply {pong!r}")
    return _check_result(ok=True)


def _check_celery_blocking() -> dict[str, Any]:
    try:
        inspector = celery_app.control.inspect(timeout=CELERY_PING_TIMEOUT_SECONDS)
        replies = (inspector.ping() if inspector is not None else None) or {}
    except Exception as exc:
        return _check_result(ok=False, error=str(exc))
    if not replies:
        return _check_result(ok=False, error="no workers answered")
    return _check_result(ok=True, workers=len(replies))


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness only; dependencies are reported by /ready."""
    return {"status": "ok", "env": get_settings().app_env}


@router.get("/ready")
async def ready() -> JSONResponse:
    database, redis, celery = await asyncio.gather(
        _check_database(),
        _check_redis(),
        asyncio.to_thread(_check_celery_blocking),
    )
    checks = {"database": database, "redis": redis, "celery": celery}
    is_ready = all(check["status"] == "ok" for check in checks.values())
    if not is_ready:
        logger.warning(
            "readiness_check_failed",
            failed=sorted(name for name, check in checks.items() if check["status"] != "ok"),
        )
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ready" if is_ready else "not_ready", "checks": checks},
    )
