"""Task 저장소 (메모리 기반, 최근 N개 보관)"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional

from resource_sync.tasks.models import TaskRecord, TaskSummary, TaskType

logger = logging.getLogger(__name__)


class TaskStore:
    """
    프로세스 수명 동안 유지되는 작업 저장소.

    - 삽입 순서를 보존한다 (목록 조회, 오래된 작업 정리 기준).
    - max_tasks 를 넘으면 가장 먼저 생성된 작업 하나를 제거한다.
    - get() 은 복사본을 돌려준다. 레코드 변경은 mutate() 로만 한다.
    """

    DEFAULT_MAX_TASKS = 100

    def __init__(self, max_tasks: int = DEFAULT_MAX_TASKS):
        if max_tasks < 1:
            raise ValueError("max_tasks must be >= 1")
        self.max_tasks = max_tasks
        self._records: "OrderedDict[str, TaskRecord]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, task_id: object) -> bool:
        with self._lock:
            return task_id in self._records

    def create(self, task_type: TaskType, params: Dict[str, Any]) -> TaskRecord:
        """새 작업(pending)을 생성한다."""
        task_id = str(uuid.uuid4())
        record = TaskRecord(
            task_id=task_id,
            task_type=task_type,
            params=dict(params or {}),
        )

        with self._lock:
            self._records[task_id] = record

            evicted: Optional[str] = None
            if len(self._records) > self.max_tasks:
                evicted, _ = self._records.popitem(last=False)

            snapshot = record.model_copy(deep=True)

        if evicted is not None:
            logger.info(f"Evicted oldest task {evicted} (max_tasks={self.max_tasks})")

        return snapshot

    def get(self, task_id: str) -> Optional[TaskRecord]:
        """작업을 조회한다."""
        with self._lock:
            record = self._records.get(task_id)
            if record is None:
                return None
            return record.model_copy(deep=True)

    def list(self) -> List[TaskSummary]:
        """생성 순서대로 작업 요약 목록을 반환한다."""
        with self._lock:
            return [record.summary() for record in self._records.values()]

    def mutate(
        self,
        task_id: str,
        updater: Callable[[TaskRecord], None],
    ) -> Optional[TaskRecord]:
        """
        저장된 레코드에 updater 를 적용하고 변경 후 스냅샷을 반환한다.

        작업이 없으면 (정리되었거나 존재하지 않음) 예외 없이 None 을 반환한다.
        """
        with self._lock:
            record = self._records.get(task_id)
            if record is None:
                return None
            updater(record)
            return record.model_copy(deep=True)
