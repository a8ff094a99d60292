# tests/conftest.py

from __future__ import annotations

import pytest

from resource_sync.config import Settings
from resource_sync.tasks.executor import TaskExecutor
from resource_sync.tasks.manager import TaskManager

from .fakes import FakeRunner


@pytest.fixture()
def settings() -> Settings:
    """Settings pointing at fake directories; nothing touches the real filesystem."""
    return Settings(
        home_path="/srv/res",
        match_path="/srv/tools/match",
        nginx_path="/srv/nginx",
        project="wtc",
        version_offset=2,
        shell="/bin/sh",
        max_tasks=10,
        heartbeat_interval=0.05,
        end_delay=0.0,
    )


@pytest.fixture()
def manager(settings: Settings) -> TaskManager:
    return TaskManager(max_tasks=settings.max_tasks)


@pytest.fixture()
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def executor(manager: TaskManager, runner: FakeRunner, settings: Settings) -> TaskExecutor:
    return TaskExecutor(manager, runner=runner, settings=settings)
