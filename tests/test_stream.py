# tests/test_stream.py

from __future__ import annotations

import asyncio
import json
from typing import List

import pytest

from resource_sync.tasks.manager import TaskManager
from resource_sync.tasks.models import LogLevel, TaskType
from resource_sync.tasks.stream import HEARTBEAT_FRAME, TaskEventStream, format_sse


def _decode(frames: List[str]) -> List[dict]:
    return [json.loads(frame[len("data: "):]) for frame in frames if frame.startswith("data: ")]


async def _drain(stream: TaskEventStream) -> List[str]:
    return [frame async for frame in stream.frames()]


def test_format_sse() -> None:
    assert format_sse({"type": "end"}) == 'data: {"type": "end"}\n\n'
    assert HEARTBEAT_FRAME == ": heartbeat\n\n"


@pytest.mark.asyncio
async def test_unknown_task_opens_nothing() -> None:
    stream = TaskEventStream(TaskManager(), "missing")
    assert stream.open() is None
    assert await _drain(stream) == []


@pytest.mark.asyncio
async def test_finished_task_replays_history_then_ends() -> None:
    manager = TaskManager()
    task_id = manager.create_task(TaskType.SYNC_NATIVE, {"version": "v1"})
    manager.start_task(task_id)
    manager.add_log(task_id, LogLevel.INFO, "first")
    manager.add_log(task_id, LogLevel.STDOUT, "second")
    manager.complete_task(task_id, {"success": True})

    stream = TaskEventStream(manager, task_id, heartbeat_interval=5, end_delay=0)
    payloads = _decode(await _drain(stream))

    assert [payload["type"] for payload in payloads] == ["connected", "log", "log", "end"]
    assert payloads[0]["task"]["status"] == "completed"
    assert [payload["log"]["message"] for payload in payloads[1:3]] == ["first", "second"]
    assert manager.bus.listener_count(task_id) == 0


@pytest.mark.asyncio
async def test_live_events_follow_history_in_order() -> None:
    manager = TaskManager()
    task_id = manager.create_task(TaskType.SYNC_NATIVE, {"version": "v1"})
    manager.add_log(task_id, LogLevel.INFO, "queued")

    stream = TaskEventStream(manager, task_id, heartbeat_interval=5, end_delay=0.01)
    assert stream.open() is not None
    consumer = asyncio.create_task(_drain(stream))

    manager.start_task(task_id)
    manager.add_log(task_id, LogLevel.STDOUT, "working")
    manager.update_progress(task_id, 50)
    manager.fail_task(task_id, "exit 1")

    payloads = _decode(await asyncio.wait_for(consumer, timeout=5))

    assert [payload["type"] for payload in payloads] == [
        "connected",
        "log",
        "update",
        "log",
        "update",
        "update",
        "end",
    ]
    assert payloads[1]["log"]["message"] == "queued"
    assert payloads[3]["log"]["message"] == "working"
    assert payloads[4]["task"]["progress"] == 50
    assert payloads[5]["task"]["status"] == "failed"
    assert payloads[5]["task"]["error"] == "exit 1"
    assert manager.bus.listener_count(task_id) == 0


@pytest.mark.asyncio
async def test_idle_stream_sends_heartbeats_and_unsubscribes_on_close() -> None:
    manager = TaskManager()
    task_id = manager.create_task(TaskType.SYNC_NATIVE, {})

    stream = TaskEventStream(manager, task_id, heartbeat_interval=0.01, end_delay=0)
    frames = stream.frames()

    connected = await frames.__anext__()
    assert _decode([connected])[0]["type"] == "connected"
    assert await frames.__anext__() == HEARTBEAT_FRAME
    assert await frames.__anext__() == HEARTBEAT_FRAME
    assert manager.bus.listener_count(task_id) == 1

    # client disconnect
    await frames.aclose()
    assert manager.bus.listener_count(task_id) == 0


@pytest.mark.asyncio
async def test_evicted_task_ends_stream() -> None:
    manager = TaskManager(max_tasks=1)
    task_id = manager.create_task(TaskType.SYNC_NATIVE, {})

    stream = TaskEventStream(manager, task_id, heartbeat_interval=0.01, end_delay=0)
    assert stream.open() is not None
    manager.create_task(TaskType.SYNC_NATIVE, {})

    payloads = _decode(await asyncio.wait_for(_drain(stream), timeout=5))
    assert [payload["type"] for payload in payloads] == ["connected", "end"]


@pytest.mark.asyncio
async def test_close_is_idempotent() -> None:
    manager = TaskManager()
    task_id = manager.create_task(TaskType.SYNC_NATIVE, {})

    stream = TaskEventStream(manager, task_id)
    stream.open()
    stream.close()
    stream.close()
    assert manager.bus.listener_count(task_id) == 0
