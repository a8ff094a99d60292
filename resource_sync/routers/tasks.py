"""작업 제출 / 상태 조회 / 실시간 스트림 라우터"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from resource_sync.config import Settings
from resource_sync.schemas import (
    FullSyncRequest,
    TaskListResponse,
    TaskStatusResponse,
    TaskSubmitResponse,
    UpdateReuseRequest,
    VersionRequest,
)
from resource_sync.tasks.executor import TaskExecutor
from resource_sync.tasks.manager import TaskManager
from resource_sync.tasks.models import TaskType
from resource_sync.tasks.stream import TaskEventStream

router = APIRouter(prefix="/tasks", tags=["tasks"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


# ── 의존성 ────────────────────────────────────────────────────

def get_manager(request: Request) -> TaskManager:
    return request.app.state.task_manager


def get_executor(request: Request) -> TaskExecutor:
    return request.app.state.task_executor


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _submit(
    request: Request,
    task_type: TaskType,
    params: Dict[str, Any],
    manager: TaskManager,
    executor: TaskExecutor,
) -> TaskSubmitResponse:
    """작업을 만들고 백그라운드 실행을 예약한 뒤 바로 응답한다."""
    task_id = manager.create_task(task_type, params)
    executor.submit(task_id)

    record = manager.get_task(task_id)
    if record is None:
        # 생성 직후 축출될 만큼 max_tasks 가 작게 설정된 경우
        raise HTTPException(status_code=503, detail="Task was evicted before it could be reported")

    return TaskSubmitResponse(
        task_id=task_id,
        task_type=task_type,
        status=record.status,
        created_at=record.created_at,
        status_url=str(request.url_for("get_task_status", task_id=task_id).path),
        stream_url=str(request.url_for("stream_task", task_id=task_id).path),
    )


# ── 작업 제출 ─────────────────────────────────────────────────

@router.post("/check-integrity", response_model=TaskSubmitResponse)
async def submit_check_integrity(
    body: VersionRequest,
    request: Request,
    manager: TaskManager = Depends(get_manager),
    executor: TaskExecutor = Depends(get_executor),
) -> TaskSubmitResponse:
    """리소스 무결성 검사 작업을 제출한다."""
    return _submit(request, TaskType.CHECK_INTEGRITY, body.model_dump(), manager, executor)


@router.post("/sync-facebook", response_model=TaskSubmitResponse)
async def submit_sync_facebook(
    body: VersionRequest,
    request: Request,
    manager: TaskManager = Depends(get_manager),
    executor: TaskExecutor = Depends(get_executor),
) -> TaskSubmitResponse:
    """Facebook 리소스 동기화 작업을 제출한다."""
    return _submit(request, TaskType.SYNC_FACEBOOK, body.model_dump(), manager, executor)


@router.post("/sync-native", response_model=TaskSubmitResponse)
async def submit_sync_native(
    body: VersionRequest,
    request: Request,
    manager: TaskManager = Depends(get_manager),
    executor: TaskExecutor = Depends(get_executor),
) -> TaskSubmitResponse:
    """Native 리소스 동기화 작업을 제출한다."""
    return _submit(request, TaskType.SYNC_NATIVE, body.model_dump(), manager, executor)


@router.post("/update-reuse", response_model=TaskSubmitResponse)
async def submit_update_reuse(
    body: UpdateReuseRequest,
    request: Request,
    manager: TaskManager = Depends(get_manager),
    executor: TaskExecutor = Depends(get_executor),
) -> TaskSubmitResponse:
    """reuse_version 교체 작업을 제출한다."""
    return _submit(
        request, TaskType.UPDATE_REUSE, body.model_dump(exclude_none=True), manager, executor
    )


@router.post("/full-sync", response_model=TaskSubmitResponse)
async def submit_full_sync(
    body: FullSyncRequest,
    request: Request,
    manager: TaskManager = Depends(get_manager),
    executor: TaskExecutor = Depends(get_executor),
) -> TaskSubmitResponse:
    """무결성 검사 -> Facebook -> Native 순서의 전체 동기화 작업을 제출한다."""
    return _submit(request, TaskType.FULL_SYNC, body.model_dump(), manager, executor)


# ── 조회 ─────────────────────────────────────────────────────

@router.get("", response_model=TaskListResponse)
async def list_tasks(manager: TaskManager = Depends(get_manager)) -> TaskListResponse:
    """보관 중인 작업 목록을 생성 순으로 조회한다."""
    return TaskListResponse(tasks=manager.list_tasks())


@router.get("/{task_id}/status", response_model=TaskStatusResponse)
async def get_task_status(
    task_id: str,
    manager: TaskManager = Depends(get_manager),
) -> TaskStatusResponse:
    """작업 상태를 조회한다 (Polling용)."""
    record = manager.get_task(task_id)

    if not record:
        raise HTTPException(status_code=404, detail="Task not found")

    return TaskStatusResponse(task=record)


@router.get("/{task_id}/stream")
async def stream_task(
    task_id: str,
    manager: TaskManager = Depends(get_manager),
    settings: Settings = Depends(get_app_settings),
) -> StreamingResponse:
    """작업 이벤트를 SSE 로 전달한다."""
    stream = TaskEventStream(
        manager,
        task_id,
        heartbeat_interval=settings.heartbeat_interval,
        end_delay=settings.end_delay,
    )
    if stream.open() is None:
        raise HTTPException(status_code=404, detail="Task not found")

    return StreamingResponse(
        stream.frames(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
        background=BackgroundTask(stream.close),
    )
