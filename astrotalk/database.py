"""
MongoDB connection guard for the Astrotalk API.

A single ``Database`` instance owns the process-wide client. Callers go
through ``ensure_connected()``, which creates the client at most once and
shares one in-flight attempt between everyone who asks while it runs. This
keeps serverless cold starts from opening a connection per request.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlsplit

from pymongo import AsyncMongoClient

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class DatabaseConnectionError(ConnectionError):
    """The MongoDB handshake failed or timed out."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


def redact_uri(uri: str) -> str:
    """Return only the host part of a connection string, safe for logs."""
    try:
        host = urlsplit(uri).hostname
    except ValueError:
        host = None
    return host or "<unparsed uri>"


class Database:
    """
    Lazily connected MongoDB handle.

    State moves disconnected -> connecting -> connected | failed. A failed
    attempt is not retried until ``retry_cooldown`` seconds have passed;
    calls inside that window fail fast with the recorded error.
    """

    def __init__(
        self,
        mongo_uri: str,
        database_name: str = "astrotalk",
        connect_timeout: float = 10.0,
        retry_cooldown: float = 5.0,
        client_factory: Callable[..., Any] = AsyncMongoClient,
    ):
        """
        Args:
            mongo_uri: MongoDB connection string (mongodb:// or mongodb+srv://)
            database_name: Database used when the URI does not name one
            connect_timeout: Upper bound in seconds for one handshake
            retry_cooldown: Seconds after a failure before a new attempt is made
            client_factory: Callable building the driver client from the URI
        """
        self.mongo_uri = mongo_uri
        self.database_name = database_name
        self.connect_timeout = connect_timeout
        self.retry_cooldown = retry_cooldown
        self.client_factory = client_factory

        self.state = ConnectionState.DISCONNECTED
        self.client = None
        self.db = None
        self.last_error: Optional[str] = None
        self.attempts = 0

        self._pending: Optional[asyncio.Task] = None
        self._failed_at: Optional[float] = None
        self._background: Optional[asyncio.Task] = None

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    async def ensure_connected(self):
        """
        Return the connected database handle, connecting first if needed.

        Raises:
            DatabaseConnectionError: if the attempt this call waited on failed,
                or a recent failure is still inside its cooldown window.
        """
        if self.state is ConnectionState.CONNECTED:
            return self.db

        if self._pending is None:
            if self._in_cooldown():
                raise DatabaseConnectionError(self.last_error or "Database connection failed")
            # No await between the check above and this assignment, so only
            # one coroutine on the loop can start an attempt.
            self.state = ConnectionState.CONNECTING
            self.attempts += 1
            self._pending = asyncio.ensure_future(self._connect())

        error = await asyncio.shield(self._pending)
        if error is not None:
            raise DatabaseConnectionError(error)
        return self.db

    def connect_in_background(self) -> Optional[asyncio.Task]:
        """Start connecting without waiting for the result. Failures are only logged."""
        if self.is_connected:
            return None
        if self._background is None or self._background.done():
            self._background = asyncio.ensure_future(self._connect_quietly())
        return self._background

    async def disconnect(self):
        """Close the client and return to the disconnected state."""
        if self._pending is not None:
            await asyncio.shield(self._pending)
        if self.client is not None:
            await self.client.close()
            logger.info("Disconnected from MongoDB")
        self.client = None
        self.db = None
        self.state = ConnectionState.DISCONNECTED
        self._failed_at = None

    def collection(self, name: str):
        """Get a collection from the connected database."""
        if not self.is_connected:
            raise DatabaseConnectionError("Database is not connected")
        return self.db[name]

    def status(self) -> Dict[str, Any]:
        """Snapshot of the connection state for health reporting."""
        return {
            "database": self.state.value,
            "attempts": self.attempts,
            "last_error": self.last_error,
        }

    def _in_cooldown(self) -> bool:
        if self.state is not ConnectionState.FAILED or self._failed_at is None:
            return False
        return time.monotonic() - self._failed_at < self.retry_cooldown

    async def _connect(self) -> Optional[str]:
        try:
            return await self._handshake()
        finally:
            # Cleared last: state must be final before a new attempt can start.
            if self.state is ConnectionState.CONNECTING:
                self.state = ConnectionState.DISCONNECTED
            self._pending = None

    async def _handshake(self) -> Optional[str]:
        """Run one handshake. Returns None on success or the error detail."""
        host = redact_uri(self.mongo_uri)
        logger.info(f"Connecting to MongoDB at {host} (attempt {self.attempts})")
        client = None
        try:
            client = self.client_factory(
                self.mongo_uri,
                serverSelectionTimeoutMS=int(self.connect_timeout * 1000),
                connectTimeoutMS=int(self.connect_timeout * 1000),
            )
            await asyncio.wait_for(client.admin.command("ping"), timeout=self.connect_timeout)
            db = client.get_default_database(default=self.database_name)
        except asyncio.TimeoutError:
            error = f"Timed out after {self.connect_timeout:g}s connecting to {host}"
        except Exception as e:
            error = str(e) or e.__class__.__name__
        else:
            self.client = client
            self.db = db
            self.last_error = None
            self._failed_at = None
            self.state = ConnectionState.CONNECTED
            logger.info(f"MongoDB connected ({db.name})")
            return None

        await self._close_quietly(client)
        self.last_error = error
        self._failed_at = time.monotonic()
        self.state = ConnectionState.FAILED
        logger.error(f"MongoDB connection error: {error}")
        return error

    async def _connect_quietly(self):
        try:
            await self.ensure_connected()
        except DatabaseConnectionError:
            # Already logged; gated requests will see a 503.
            pass

    @staticmethod
    async def _close_quietly(client):
        if client is None:
            return
        try:
            await client.close()
        except Exception as e:
            logger.warning(f"Error closing MongoDB client after failed connect: {e}")
