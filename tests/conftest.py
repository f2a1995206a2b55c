"""
Shared pytest fixtures for Astrotalk API tests.

This module provides:
- Environment defaults so the application module can be imported
- A fake MongoDB client factory that records handshakes
- Helpers to build an app around a fake-backed Database
"""

import asyncio
import os
from typing import Dict, Optional

import pytest

# Settings are read at import time; give them a URI before anything imports astrotalk.
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017/astrotalk_test")
os.environ.setdefault("CONNECT_ON_STARTUP", "false")


# ============================================================================
# Fake MongoDB driver
# ============================================================================

class FakeCollection:
    def __init__(self, count: int):
        self.count = count

    async def estimated_document_count(self):
        return self.count


class FakeMongoDatabase:
    def __init__(self, name: str, counts: Dict[str, int]):
        self.name = name
        self.counts = counts

    def __getitem__(self, collection: str):
        return FakeCollection(self.counts.get(collection, 0))


class FakeAdmin:
    def __init__(self, factory: "FakeClientFactory"):
        self.factory = factory

    async def command(self, name: str):
        self.factory.pings += 1
        if self.factory.gate is not None:
            await self.factory.gate.wait()
        if self.factory.delay:
            await asyncio.sleep(self.factory.delay)
        if self.factory.error is not None:
            raise self.factory.error
        return {"ok": 1.0}


class FakeClient:
    def __init__(self, factory: "FakeClientFactory", uri: str, options: dict):
        self.factory = factory
        self.uri = uri
        self.options = options
        self.admin = FakeAdmin(factory)
        self.closed = False

    def get_default_database(self, default: Optional[str] = None):
        return FakeMongoDatabase(default, self.factory.counts)

    async def close(self):
        self.closed = True


class FakeClientFactory:
    """Stands in for AsyncMongoClient; counts clients created and pings sent."""

    def __init__(self, error: Optional[Exception] = None, delay: float = 0, counts=None):
        self.error = error
        self.delay = delay
        self.counts = counts or {}
        self.gate: Optional[asyncio.Event] = None
        self.clients = []
        self.pings = 0

    def __call__(self, uri: str, **options):
        client = FakeClient(self, uri, options)
        self.clients.append(client)
        return client


# ============================================================================
# Fixtures
# ============================================================================

TEST_URI = "mongodb://localhost:27017/astrotalk_test"


@pytest.fixture
def fake_factory():
    """A fake driver whose handshakes succeed immediately."""
    return FakeClientFactory(counts={"astrologers": 12, "bookings": 3, "users": 40})


@pytest.fixture
def make_database(fake_factory):
    """Build a Database wired to the fake driver."""
    from astrotalk.database import Database

    def _make(factory=None, **kwargs):
        kwargs.setdefault("retry_cooldown", 0)
        return Database(TEST_URI, client_factory=factory or fake_factory, **kwargs)

    return _make


@pytest.fixture
def make_settings(tmp_path):
    """Build Settings without reading a .env file."""
    from astrotalk.config import load_settings

    def _make(**overrides):
        overrides.setdefault("MONGO_URI", TEST_URI)
        overrides.setdefault("uploads_dir", str(tmp_path / "uploads"))
        overrides.setdefault("connect_on_startup", False)
        return load_settings(_env_file=None, **overrides)

    return _make


@pytest.fixture
def make_app(make_settings, make_database):
    """Build a FastAPI app around a fake-backed Database."""
    from astrotalk.main import create_app

    def _make(database=None, **overrides):
        database = database or make_database()
        app = create_app(make_settings(**overrides), database)
        return app, database

    return _make
