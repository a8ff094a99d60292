"""Task 모델 정의"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskStatus(str, Enum):
    """작업 상태"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


class TaskType(str, Enum):
    """작업 유형"""
    CHECK_INTEGRITY = "check-integrity"
    SYNC_FACEBOOK = "sync-facebook"
    SYNC_NATIVE = "sync-native"
    UPDATE_REUSE = "update-reuse"
    FULL_SYNC = "full-sync"


class LogLevel(str, Enum):
    """작업 로그 레벨"""
    INFO = "info"
    STDOUT = "stdout"
    STDERR = "stderr"
    ERROR = "error"
    SUCCESS = "success"


class UpdateOutcome(str, Enum):
    """TaskManager 변경 요청의 처리 결과"""
    APPLIED = "applied"
    NOT_FOUND = "not_found"
    # 상태 전이 규칙 위반 (예: 이미 종료된 작업을 다시 완료)
    REJECTED = "rejected"


class LogEntry(BaseModel):
    """작업 로그 한 줄"""
    timestamp: datetime = Field(default_factory=utcnow)
    level: LogLevel
    message: str


class TaskRecord(BaseModel):
    """작업 레코드"""
    task_id: str
    task_type: TaskType
    params: Dict[str, Any] = Field(default_factory=dict)
    status: TaskStatus = TaskStatus.PENDING
    progress: int = 0
    logs: List[LogEntry] = Field(default_factory=list)
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def summary(self) -> "TaskSummary":
        return TaskSummary(
            task_id=self.task_id,
            task_type=self.task_type,
            status=self.status,
            progress=self.progress,
            created_at=self.created_at,
            completed_at=self.completed_at,
        )


class TaskSummary(BaseModel):
    """작업 목록용 요약"""
    task_id: str
    task_type: TaskType
    status: TaskStatus
    progress: int
    created_at: datetime
    completed_at: Optional[datetime] = None


class TaskEvent(BaseModel):
    """구독자에게 전달되는 이벤트 (log | update)"""
    type: Literal["log", "update"]
    log: Optional[LogEntry] = None
    task: Optional[TaskRecord] = None

    @classmethod
    def for_log(cls, entry: LogEntry) -> "TaskEvent":
        return cls(type="log", log=entry)

    @classmethod
    def for_update(cls, record: TaskRecord) -> "TaskEvent":
        return cls(type="update", task=record)

    @property
    def is_terminal_update(self) -> bool:
        return self.type == "update" and self.task is not None and self.task.status.is_terminal

    def to_payload(self) -> Dict[str, Any]:
        """SSE/JSON 전송용 dict로 변환한다."""
        if self.type == "log":
            return {"type": "log", "log": self.log.model_dump(mode="json") if self.log else None}
        return {"type": "update", "task": self.task.model_dump(mode="json") if self.task else None}


TaskListener = Callable[[TaskEvent], None]
