"""BaseWorker 추상 클래스"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from resource_sync.tasks.commands import CommandResult, CommandSpec, PipelineStageError, SequenceResult
from resource_sync.tasks.models import LogLevel, TaskType, UpdateOutcome
from resource_sync.utils.version import InvalidVersionFormat, VersionError, validate_version

if TYPE_CHECKING:
    from resource_sync.tasks.executor import TaskExecutor

logger = logging.getLogger(__name__)


class BaseWorker(ABC):
    """
    모든 Worker의 부모 클래스.

    새 Worker를 추가할 때는 이 클래스를 상속받고
    @register_worker 데코레이터를 사용한다.

    run() 은 작업을 running 으로 바꾸고 execute() 결과에 따라
    completed / failed 로 마무리한다. 다른 Worker 의 execute() 를
    직접 호출하면 상태 전이 없이 단계로 재사용할 수 있다 (full-sync).
    """

    task_type: TaskType

    def __init__(
        self,
        task_id: str,
        params: Dict[str, Any],
        executor: "TaskExecutor",
        report_progress: bool = True,
    ):
        self.task_id = task_id
        self.params = params
        self.executor = executor
        self.manager = executor.manager
        self.settings = executor.settings
        self.report_progress = report_progress

    @abstractmethod
    async def execute(self) -> Dict[str, Any]:
        """
        작업을 실행하고 결과를 반환한다.

        Returns:
            작업 결과 딕셔너리
        """

    async def run(self) -> None:
        """
        작업을 끝까지 실행한다. 예외는 작업 실패로 기록한다.

        pending 이 아닌 작업(이미 실행 중이거나 종료됨)은 명령을 실행하지 않는다.
        """
        outcome = self.mark_running()
        if outcome is not UpdateOutcome.APPLIED:
            logger.warning(
                f"Task {self.task_id} was not started ({outcome.value}), skipping execution"
            )
            return

        try:
            result = await self.execute()
        except (PipelineStageError, VersionError) as e:
            self.mark_failed(e)
            return
        except Exception as e:
            logger.exception(f"Task {self.task_id} ({self.task_type.value}) raised an unexpected error")
            self.mark_failed(e)
            return

        self.mark_completed(result)

    # ── 상태 변경 (TaskManager 위임) ─────────────────────────────

    def mark_running(self) -> UpdateOutcome:
        """작업을 running 상태로 변경한다."""
        return self.manager.start_task(self.task_id)

    def mark_completed(self, result: Dict[str, Any]) -> None:
        """작업을 completed 상태로 변경한다."""
        self.manager.complete_task(self.task_id, result)

    def mark_failed(self, error: Union[str, BaseException]) -> None:
        """작업을 failed 상태로 변경한다."""
        self.manager.fail_task(self.task_id, error)

    def update_progress(self, progress: int) -> None:
        """진행률을 업데이트한다."""
        self.manager.update_progress(self.task_id, progress)

    def log(self, level: LogLevel, message: str) -> None:
        self.manager.add_log(self.task_id, level, message)

    # ── 명령 실행 ──────────────────────────────────────────────

    async def run_command(self, spec: CommandSpec) -> CommandResult:
        return await self.executor.run_command(self.task_id, spec)

    async def run_sequence(self, specs: List[CommandSpec], stop_on_error: bool) -> SequenceResult:
        return await self.executor.run_sequence(
            self.task_id,
            specs,
            stop_on_error=stop_on_error,
            report_progress=self.report_progress,
        )

    # ── 파라미터 ──────────────────────────────────────────────

    def require_version(self, key: str = "version", required: bool = True) -> Optional[str]:
        """버전 파라미터를 읽고 형식을 검증한다."""
        value = self.params.get(key)
        if value in (None, ""):
            if required:
                raise InvalidVersionFormat(f"Missing required parameter: {key}")
            return None

        version = str(value)
        if not validate_version(version):
            raise InvalidVersionFormat(f"Invalid version format: {version}")
        return version
