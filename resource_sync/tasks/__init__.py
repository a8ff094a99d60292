"""작업 시스템 (인메모리 저장소 + 이벤트 구독 + 셸 명령 실행)"""

from resource_sync.tasks.events import TaskEventBus
from resource_sync.tasks.executor import TaskExecutor
from resource_sync.tasks.manager import TaskManager
from resource_sync.tasks.models import TaskStatus, TaskType
from resource_sync.tasks.registry import get_worker, register_worker
from resource_sync.tasks.store import TaskStore

__all__ = [
    "TaskStatus",
    "TaskType",
    "TaskStore",
    "TaskEventBus",
    "TaskManager",
    "TaskExecutor",
    "register_worker",
    "get_worker",
]
