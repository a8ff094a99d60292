from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from resource_sync.config import Settings, configure_logging, get_settings
from resource_sync.routers import tasks as tasks_router
from resource_sync.tasks.executor import TaskExecutor
from resource_sync.tasks.manager import TaskManager
from resource_sync.tasks.runner import ProcessRunner

logger = logging.getLogger(__name__)

API_ENDPOINTS = {
    "POST /api/tasks/check-integrity": "리소스 무결성 검사",
    "POST /api/tasks/sync-facebook": "Facebook 리소스 동기화",
    "POST /api/tasks/sync-native": "Native 리소스 동기화",
    "POST /api/tasks/update-reuse": "reuse_version 교체",
    "POST /api/tasks/full-sync": "무결성 검사 + Facebook + Native 동기화",
    "GET /api/tasks": "작업 목록",
    "GET /api/tasks/{task_id}/status": "작업 상태 조회",
    "GET /api/tasks/{task_id}/stream": "작업 이벤트 스트림 (SSE)",
}


def create_app(
    settings: Optional[Settings] = None,
    manager: Optional[TaskManager] = None,
    executor: Optional[TaskExecutor] = None,
) -> FastAPI:
    # FastAPI 앱과 공통 미들웨어/라우터, 작업 실행 구성요소를 묶는다.
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    manager = manager or TaskManager(max_tasks=settings.max_tasks)
    executor = executor or TaskExecutor(
        manager,
        runner=ProcessRunner(shell=settings.shell),
        settings=settings,
    )

    app = FastAPI(title="resource-sync", version="0.1.0")
    app.state.settings = settings
    app.state.task_manager = manager
    app.state.task_executor = executor

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(tasks_router.router, prefix="/api")

    @app.get("/api")
    async def index() -> Dict[str, Any]:
        # 사용 가능한 엔드포인트 목록.
        return {"name": "resource-sync", "endpoints": API_ENDPOINTS}

    @app.get("/health")
    async def health() -> Dict[str, str]:
        # 간단한 헬스 체크 엔드포인트.
        return {"status": "ok"}

    logger.info(
        f"App created (project: {settings.project}, home: {settings.home_path}, "
        f"max_tasks: {settings.max_tasks})"
    )
    return app


app = create_app()
