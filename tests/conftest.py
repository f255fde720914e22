# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from smarttask.db import SQLiteRepository
from smarttask.repositories import InMemoryRepository, Repository
from smarttask.service import TaskService

from .fakes import NOW, FixedClock


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture(params=["memory", "sqlite"])
def repository(request: pytest.FixtureRequest, tmp_path: Path, clock: FixedClock) -> Repository:
    """
    Every backend must honour the same contract, so contract tests run
    against both. SQLite uses a fresh file per test.
    """
    if request.param == "sqlite":
        return SQLiteRepository(str(tmp_path / "tasks.db"), clock=clock)
    return InMemoryRepository(clock=clock)


@pytest.fixture()
def service(repository: Repository, clock: FixedClock) -> TaskService:
    return TaskService(repository, clock)

