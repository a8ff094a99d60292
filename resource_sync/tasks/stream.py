"""작업 이벤트를 SSE(Server-Sent Events) 프레임으로 변환한다."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

from resource_sync.tasks.manager import TaskManager
from resource_sync.tasks.models import TaskEvent, TaskRecord

logger = logging.getLogger(__name__)

HEARTBEAT_FRAME = ": heartbeat\n\n"
END_PAYLOAD = {"type": "end"}


def format_sse(payload: Dict[str, Any]) -> str:
    """dict 를 `data: {...}` SSE 프레임으로 만든다."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class TaskEventStream:
    """
    작업 하나에 대한 실시간 이벤트 스트림.

    프레임 순서:
        1. connected (현재 스냅샷)
        2. 지금까지 쌓인 log 들
        3. 이후 발행되는 log / update
        4. 종료 상태의 update 를 받으면 end_delay 후 end 를 보내고 끝낸다
    heartbeat_interval 동안 이벤트가 없으면 heartbeat 주석 프레임을 보낸다.

    사용 예:
        stream = TaskEventStream(manager, task_id)
        if stream.open() is None:
            ...  # 404
        async for frame in stream.frames():
            ...
    """

    def __init__(
        self,
        manager: TaskManager,
        task_id: str,
        heartbeat_interval: float = 30.0,
        end_delay: float = 1.0,
    ):
        self.manager = manager
        self.task_id = task_id
        self.heartbeat_interval = heartbeat_interval
        self.end_delay = end_delay
        self._queue: asyncio.Queue[TaskEvent] = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._snapshot: Optional[TaskRecord] = None
        self._attached = False

    def _on_event(self, event: TaskEvent) -> None:
        # publish 는 다른 스레드에서 호출될 수 있다
        self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    def open(self) -> Optional[TaskRecord]:
        """스냅샷을 읽고 구독한다. 작업이 없으면 None."""
        if self._attached:
            return self._snapshot

        self._loop = asyncio.get_running_loop()
        self._snapshot = self.manager.attach(self.task_id, self._on_event)
        self._attached = self._snapshot is not None
        if self._attached:
            logger.info(f"Stream opened for task {self.task_id}")
        return self._snapshot

    def close(self) -> None:
        """구독을 해제한다. 여러 번 호출해도 된다."""
        if not self._attached:
            return
        self._attached = False
        self.manager.unsubscribe(self.task_id, self._on_event)
        logger.info(f"Stream closed for task {self.task_id}")

    async def frames(self) -> AsyncIterator[str]:
        """SSE 프레임을 순서대로 생성한다. 끝나거나 취소되면 구독을 해제한다."""
        snapshot = self.open()
        if snapshot is None:
            return

        try:
            yield format_sse({"type": "connected", "task": snapshot.model_dump(mode="json")})
            for entry in snapshot.logs:
                yield format_sse({"type": "log", "log": entry.model_dump(mode="json")})

            if snapshot.status.is_terminal:
                yield format_sse(END_PAYLOAD)
                return

            while True:
                try:
                    event = await asyncio.wait_for(self._queue.get(), timeout=self.heartbeat_interval)
                except asyncio.TimeoutError:
                    if self.manager.get_task(self.task_id) is None:
                        logger.info(f"Task {self.task_id} was evicted, ending stream")
                        yield format_sse(END_PAYLOAD)
                        return
                    yield HEARTBEAT_FRAME
                    continue

                yield format_sse(event.to_payload())

                if event.is_terminal_update:
                    if self.end_delay > 0:
                        await asyncio.sleep(self.end_delay)
                    while not self._queue.empty():
                        yield format_sse(self._queue.get_nowait().to_payload())
                    yield format_sse(END_PAYLOAD)
                    return
        finally:
            self.close()
