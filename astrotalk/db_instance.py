"""Shared database instance for all routers."""
import asyncio
import logging

from fastapi import HTTPException, Request, status

from astrotalk.config import settings
from astrotalk.database import ConnectionState, Database, DatabaseConnectionError

logger = logging.getLogger(__name__)

# Shared database instance - connection started in main.py lifespan or on first request
db = Database(
    settings.mongo_uri,
    database_name=settings.mongo_db_name,
    connect_timeout=settings.mongo_connect_timeout_seconds,
    retry_cooldown=settings.mongo_retry_cooldown_seconds,
)


def _retry_after(database: Database) -> str:
    return str(max(1, int(round(database.retry_cooldown))))


async def require_database(request: Request):
    """
    Dependency that waits for the database before a handler runs.

    Returns the connected Database. Raises 503 if the connection is still
    being established after the configured wait, or if the last attempt failed.
    """
    database: Database = request.app.state.db
    if database.state is ConnectionState.CONNECTED:
        return database

    wait_timeout = request.app.state.settings.request_wait_timeout_seconds
    try:
        await asyncio.wait_for(database.ensure_connected(), timeout=wait_timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Database still connecting after {wait_timeout:g}s, rejecting {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection in progress",
            headers={"Retry-After": "1"},
        )
    except DatabaseConnectionError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
            headers={"Retry-After": _retry_after(database)},
        ) from e
    return database
