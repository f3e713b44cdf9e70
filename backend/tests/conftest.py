"""Shared pytest fixtures for Focus Flow tests."""

import random

import pytest
from httpx import ASGITransport, AsyncClient

from focusflow.db.connection import Database
from focusflow.importer.router import get_import_service
from focusflow.importer.service import ImportService
from focusflow.main import app
from focusflow.tasks.router import get_task_store
from focusflow.tasks.store import TaskStore


@pytest.fixture
async def db():
    """In-memory database for tests."""
    database = await Database.connect(":memory:")
    yield database
    await database.close()


@pytest.fixture
async def task_store(db):
    """TaskStore backed by in-memory database."""
    return TaskStore(db)


@pytest.fixture
async def import_service(task_store):
    """ImportService with a seeded colour draw."""
    return ImportService(task_store, rng=random.Random(7))


@pytest.fixture
async def client(task_store, import_service):
    """Async test client with in-memory DB wired into the app."""
    app.dependency_overrides[get_task_store] = lambda: task_store
    app.dependency_overrides[get_import_service] = lambda: import_service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()
