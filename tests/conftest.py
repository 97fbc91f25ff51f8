# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from task_flow.backends import RecordApiClient, memory_backends, sqlite_backends
from task_flow.store import Stores

from .fakes import FakeSession


@pytest.fixture()
def stores() -> Stores:
    """Stores over the in-memory backends, seeded with the bundled fixtures."""
    return Stores(memory_backends())


@pytest.fixture()
def sqlite_stores(tmp_path: Path) -> Stores:
    """Stores over a fresh SQLite file with the default categories and no tasks."""
    return Stores(sqlite_backends(tmp_path / "tasks.db"))


@pytest.fixture(params=["memory", "sqlite"])
def empty_stores(request: pytest.FixtureRequest, tmp_path: Path) -> Stores:
    """
    Stores with no tasks, once per local backend.

    Store-level properties must hold the same way whichever backend is
    underneath.
    """
    if request.param == "memory":
        return Stores(memory_backends(seed=False))
    return Stores(sqlite_backends(tmp_path / "tasks.db"))


@pytest.fixture()
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def client(session: FakeSession) -> RecordApiClient:
    return RecordApiClient(
        base_url="https://records.example.test/api/",
        api_key="secret",
        timeout_seconds=5,
        session=session,
    )
