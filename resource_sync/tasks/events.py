"""작업별 이벤트 버스 (pub/sub)"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List

from resource_sync.tasks.models import TaskEvent, TaskListener

logger = logging.getLogger(__name__)


class TaskEventBus:
    """
    task_id 별 구독자 목록을 관리하고 이벤트를 동기적으로 전달한다.

    - 구독 이전에 발행된 이벤트는 다시 보내지 않는다 (backlog 없음).
    - publish 는 구독자 목록의 스냅샷을 순회하므로, 전달 도중의
      subscribe/unsubscribe 는 다음 publish 부터 반영된다.
    - 한 구독자에서 발생한 예외는 로그만 남기고 나머지 구독자에게 계속 전달한다.
    """

    def __init__(self):
        self._listeners: Dict[str, List[TaskListener]] = {}
        self._lock = threading.Lock()

    def subscribe(self, task_id: str, listener: TaskListener) -> None:
        """이후 발행되는 이벤트를 받을 구독자를 등록한다."""
        with self._lock:
            self._listeners.setdefault(task_id, []).append(listener)

    def unsubscribe(self, task_id: str, listener: TaskListener) -> None:
        """구독을 해제한다. 이미 해제된 구독자면 아무것도 하지 않는다."""
        with self._lock:
            listeners = self._listeners.get(task_id)
            if not listeners:
                return
            try:
                listeners.remove(listener)
            except ValueError:
                return
            if not listeners:
                del self._listeners[task_id]

    def listener_count(self, task_id: str) -> int:
        with self._lock:
            return len(self._listeners.get(task_id, ()))

    def publish(self, task_id: str, event: TaskEvent) -> int:
        """
        현재 등록된 구독자에게 등록 순서대로 이벤트를 전달한다.

        Returns:
            이벤트를 정상적으로 받은 구독자 수
        """
        with self._lock:
            listeners = list(self._listeners.get(task_id, ()))

        delivered = 0
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Listener failed for task {task_id} (event: {event.type})")
                continue
            delivered += 1

        return delivered
