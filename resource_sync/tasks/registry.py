"""Worker Registry (Worker 자동 등록)"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Type, Union

from resource_sync.tasks.models import TaskType

if TYPE_CHECKING:
    from resource_sync.tasks.executor import TaskExecutor
    from resource_sync.tasks.workers.base import BaseWorker

# Worker 클래스 레지스트리
WORKER_REGISTRY: Dict[TaskType, Type["BaseWorker"]] = {}


def register_worker(task_type: Union[TaskType, str]):
    """
    Worker 클래스를 레지스트리에 등록하는 데코레이터.

    사용 예:
        @register_worker(TaskType.SYNC_NATIVE)
        class SyncNativeWorker(BaseWorker):
            async def execute(self) -> dict:
                ...
    """
    key = TaskType(task_type)

    def decorator(cls: Type["BaseWorker"]) -> Type["BaseWorker"]:
        cls.task_type = key
        WORKER_REGISTRY[key] = cls
        return cls
    return decorator


def get_worker(
    task_type: Union[TaskType, str],
    task_id: str,
    params: Dict[str, Any],
    executor: "TaskExecutor",
) -> "BaseWorker":
    """
    task_type에 해당하는 Worker 인스턴스를 생성한다.

    Raises:
        KeyError: 등록되지 않은 task_type인 경우
    """
    key = TaskType(task_type)
    if key not in WORKER_REGISTRY:
        raise KeyError(f"Unknown task type: {key.value}")

    worker_cls = WORKER_REGISTRY[key]
    return worker_cls(task_id, params, executor)


def list_workers() -> List[str]:
    """등록된 모든 Worker 타입을 반환한다."""
    return [task_type.value for task_type in WORKER_REGISTRY]
