"""Health check: database reachability, applied migration and pool usage."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import QueuePool

from leadflow.adapters.persistence.database import engine, get_session
from leadflow.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def pool_status() -> dict:
    """Connection pool counters of the shared engine."""
    pool = engine.pool
    status = {"class": type(pool).__name__}
    if isinstance(pool, QueuePool):
        status.update(
            size=pool.size(),
            checked_out=pool.checkedout(),
            overflow=pool.overflow(),
        )
    return status


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    """Check database connectivity and that the schema has been migrated.

    Rotation needs the cursor and event tables, so an unmigrated database
    reports ``degraded`` even when it answers.
    """
    revision = None
    try:
        await session.execute(text("SELECT 1"))
        result = await session.execute(text("SELECT version_num FROM alembic_version"))
        revision = result.scalar()
        db_status = "connected"
    except Exception as e:
        logger.warning("Health check failed: %s", e)
        db_status = f"error: {e}"

    return {
        "status": "ok" if db_status == "connected" and revision else "degraded",
        "database": db_status,
        "schema_revision": revision,
        "pool": pool_status(),
        "stats_timezone": settings.stats_timezone,
        "service": "leadflow - lead rotation engine",
    }
