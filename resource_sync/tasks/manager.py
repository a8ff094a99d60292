"""TaskManager: 작업 상태 변경과 이벤트 발행을 담당한다."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Collection, Dict, List, Optional, Union

from resource_sync.tasks.events import TaskEventBus
from resource_sync.tasks.models import (
    LogEntry,
    LogLevel,
    TaskEvent,
    TaskListener,
    TaskRecord,
    TaskStatus,
    TaskSummary,
    TaskType,
    UpdateOutcome,
    utcnow,
)
from resource_sync.tasks.store import TaskStore

logger = logging.getLogger(__name__)

_NON_TERMINAL = (TaskStatus.PENDING, TaskStatus.RUNNING)


class TaskManager:
    """
    작업 레코드의 유일한 변경 주체.

    모든 변경은 하나의 락 안에서 "저장소 반영 -> 이벤트 발행" 순서로 처리되므로,
    구독자는 항상 저장소에 이미 반영된 상태를 받는다.

    상태 전이:
        pending -> running            (start_task)
        running -> completed | failed (complete_task / fail_task)
    종료 상태(completed, failed)에서는 어떤 전이도 허용하지 않는다.
    """

    def __init__(
        self,
        store: Optional[TaskStore] = None,
        bus: Optional[TaskEventBus] = None,
        max_tasks: int = TaskStore.DEFAULT_MAX_TASKS,
    ):
        self.store = store or TaskStore(max_tasks=max_tasks)
        self.bus = bus or TaskEventBus()
        self._lock = threading.RLock()

    # ── 생성/조회 ──────────────────────────────────────────────

    def create_task(self, task_type: Union[TaskType, str], params: Dict[str, Any]) -> str:
        """새 작업을 pending 상태로 생성하고 task_id 를 반환한다."""
        task_type = TaskType(task_type)
        with self._lock:
            record = self.store.create(task_type, params)
        logger.info(f"Task created: {record.task_id} (type: {task_type.value}, params: {params})")
        return record.task_id

    def get_task(self, task_id: str) -> Optional[TaskRecord]:
        return self.store.get(task_id)

    def list_tasks(self) -> List[TaskSummary]:
        return self.store.list()

    # ── 상태 전이 ──────────────────────────────────────────────

    def start_task(self, task_id: str) -> UpdateOutcome:
        """작업을 running 상태로 변경한다."""
        def apply(record: TaskRecord) -> None:
            record.status = TaskStatus.RUNNING
            record.started_at = utcnow()

        return self._update(task_id, apply, allowed_from=(TaskStatus.PENDING,), action="start")

    def update_progress(self, task_id: str, progress: int) -> UpdateOutcome:
        """진행률을 변경한다. 단조 증가 여부는 호출자가 책임진다."""
        value = max(0, min(100, int(progress)))

        def apply(record: TaskRecord) -> None:
            record.progress = value

        return self._update(task_id, apply, allowed_from=_NON_TERMINAL, action="update progress of")

    def complete_task(self, task_id: str, result: Optional[Dict[str, Any]] = None) -> UpdateOutcome:
        """작업을 completed 상태로 변경한다. progress 는 항상 100이 된다."""
        def apply(record: TaskRecord) -> None:
            record.status = TaskStatus.COMPLETED
            record.result = result if result is not None else {}
            record.progress = 100
            record.completed_at = utcnow()

        return self._update(task_id, apply, allowed_from=(TaskStatus.RUNNING,), action="complete")

    def fail_task(self, task_id: str, error: Union[str, BaseException]) -> UpdateOutcome:
        """작업을 failed 상태로 변경한다."""
        message = str(error)
        if isinstance(error, BaseException) and not message:
            message = type(error).__name__

        def apply(record: TaskRecord) -> None:
            record.status = TaskStatus.FAILED
            record.error = message
            record.completed_at = utcnow()

        outcome = self._update(task_id, apply, allowed_from=(TaskStatus.RUNNING,), action="fail")
        if outcome is UpdateOutcome.APPLIED:
            logger.error(f"Task {task_id} failed: {message}")
        return outcome

    # ── 로그 ──────────────────────────────────────────────────

    def add_log(self, task_id: str, level: Union[LogLevel, str], message: str) -> UpdateOutcome:
        """작업 로그를 추가하고 log 이벤트를 발행한다."""
        entry = LogEntry(level=LogLevel(level), message=message)

        with self._lock:
            found = self.store.mutate(task_id, lambda record: record.logs.append(entry))
            if found is None:
                logger.debug(f"Dropped log for unknown task {task_id}: {message}")
                return UpdateOutcome.NOT_FOUND
            self.bus.publish(task_id, TaskEvent.for_log(entry.model_copy()))

        return UpdateOutcome.APPLIED

    # ── 구독 ──────────────────────────────────────────────────

    def subscribe(self, task_id: str, listener: TaskListener) -> None:
        self.bus.subscribe(task_id, listener)

    def unsubscribe(self, task_id: str, listener: TaskListener) -> None:
        self.bus.unsubscribe(task_id, listener)

    def attach(self, task_id: str, listener: TaskListener) -> Optional[TaskRecord]:
        """
        현재 스냅샷을 읽고 구독을 등록한다 (원자적).

        스냅샷의 logs 이후에 발행되는 이벤트만 listener 로 전달되므로
        이력과 실시간 이벤트 사이에 누락이나 중복이 없다.
        작업이 없으면 구독하지 않고 None 을 반환한다.
        """
        with self._lock:
            snapshot = self.store.get(task_id)
            if snapshot is None:
                return None
            self.bus.subscribe(task_id, listener)
            return snapshot

    # ── 내부 ──────────────────────────────────────────────────

    def _update(
        self,
        task_id: str,
        apply: Callable[[TaskRecord], None],
        *,
        allowed_from: Collection[TaskStatus],
        action: str,
    ) -> UpdateOutcome:
        rejected_from: List[TaskStatus] = []

        def updater(record: TaskRecord) -> None:
            if record.status not in allowed_from:
                rejected_from.append(record.status)
                return
            apply(record)

        with self._lock:
            snapshot = self.store.mutate(task_id, updater)
            if snapshot is None:
                logger.warning(f"Task not found: {task_id}")
                return UpdateOutcome.NOT_FOUND

            if rejected_from:
                logger.warning(
                    f"Cannot {action} task {task_id}: status is {rejected_from[0].value}"
                )
                return UpdateOutcome.REJECTED

            self.bus.publish(task_id, TaskEvent.for_update(snapshot))

        return UpdateOutcome.APPLIED
