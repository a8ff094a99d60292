from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from resource_sync.tasks.models import TaskRecord, TaskStatus, TaskSummary, TaskType
from resource_sync.utils.version import validate_version


# ============================================================
# 작업 요청 스키마
# ============================================================

def _check_version(value: str) -> str:
    value = value.strip()
    if not validate_version(value):
        raise ValueError(f"Invalid version format: {value}")
    return value


class VersionRequest(BaseModel):
    """check-integrity / sync-facebook / sync-native 요청"""
    version: str = Field(..., examples=["v885"])

    @field_validator("version")
    @classmethod
    def _validate_version(cls, value: str) -> str:
        return _check_version(value)


class UpdateReuseRequest(VersionRequest):
    """update-reuse 요청. nginx_reuse_version 이 없으면 서버에서 계산한다."""
    nginx_reuse_version: Optional[str] = None

    @field_validator("nginx_reuse_version")
    @classmethod
    def _validate_nginx_reuse_version(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value.strip() == "":
            return None
        return _check_version(value)


class FullSyncRequest(VersionRequest):
    """full-sync 요청"""
    skip_check: bool = False


# ============================================================
# 작업 응답 스키마
# ============================================================

class TaskSubmitResponse(BaseModel):
    """작업 제출 응답"""
    task_id: str
    task_type: TaskType
    status: TaskStatus
    created_at: datetime
    status_url: str
    stream_url: str


class TaskStatusResponse(BaseModel):
    """작업 상태 조회 응답"""
    task: TaskRecord


class TaskListResponse(BaseModel):
    """작업 목록 응답 (생성 순)"""
    tasks: List[TaskSummary] = Field(default_factory=list)
