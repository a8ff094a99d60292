"""전체 배포 파이프라인 Worker"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from resource_sync.tasks.commands import PipelineStageError
from resource_sync.tasks.models import LogLevel, TaskType
from resource_sync.tasks.registry import register_worker
from resource_sync.tasks.workers.base import BaseWorker
from resource_sync.tasks.workers.integrity import CheckIntegrityWorker
from resource_sync.tasks.workers.sync import SyncFacebookWorker, SyncNativeWorker

logger = logging.getLogger(__name__)

# (진행률, 단계 Worker, 시작 메시지, 실패 메시지)
PIPELINE = [
    (10, CheckIntegrityWorker, "Step 1/3: Checking resource integrity...", "Integrity check failed"),
    (40, SyncFacebookWorker, "Step 2/3: Syncing Facebook resources...", "Facebook sync failed"),
    (70, SyncNativeWorker, "Step 3/3: Syncing Native resources...", "Native sync failed"),
]


@register_worker(TaskType.FULL_SYNC)
class FullSyncWorker(BaseWorker):
    """
    무결성 검사(skip_check 로 생략 가능) -> Facebook 동기화 -> Native 동기화.

    단계가 실패하면 이후 단계는 실행하지 않고 작업을 실패 처리한다.
    진행률은 단계 시작 시점에만 갱신한다.
    """

    async def execute(self) -> Dict[str, Any]:
        self.require_version()
        skip_check = bool(self.params.get("skip_check", False))
        results: List[Dict[str, Any]] = []

        for progress, stage_cls, start_message, failure_message in PIPELINE:
            if skip_check and stage_cls is CheckIntegrityWorker:
                logger.info(f"Skipping integrity check (task: {self.task_id})")
                continue

            self.update_progress(progress)
            self.log(LogLevel.INFO, start_message)

            stage = stage_cls(self.task_id, self.params, self.executor, report_progress=False)
            stage_result = await stage.execute()
            results.append({"step": stage_cls.task_type.value, **stage_result})

            if not stage_result.get("success"):
                raise PipelineStageError(failure_message)

        return {"results": results}
