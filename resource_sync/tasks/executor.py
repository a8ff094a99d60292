"""Task Executor: Worker 를 백그라운드에서 실행하고 명령 출력을 작업 로그로 전달한다."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set, Union

from resource_sync.config import Settings, get_settings
from resource_sync.tasks.commands import CommandResult, CommandSpec, SequenceResult
from resource_sync.tasks.manager import TaskManager
from resource_sync.tasks.models import LogLevel, TaskRecord, TaskStatus
from resource_sync.tasks.registry import get_worker
from resource_sync.tasks.runner import OutputLine, ProcessRunner

# Worker 등록을 위해 import
import resource_sync.tasks.workers  # noqa: F401

logger = logging.getLogger(__name__)


class TaskExecutor:
    """
    pending 상태로 생성된 작업을 끝(completed / failed)까지 실행한다.

    execute() 는 예외를 밖으로 던지지 않는다. 예상하지 못한 오류도
    fail_task 로 기록되므로 작업이 running 상태로 남지 않는다.
    """

    def __init__(
        self,
        manager: TaskManager,
        runner: Optional[ProcessRunner] = None,
        settings: Optional[Settings] = None,
    ):
        self.manager = manager
        self.settings = settings or get_settings()
        self.runner = runner or ProcessRunner(shell=self.settings.shell)
        self._running: Set[asyncio.Task] = set()

    @property
    def active_count(self) -> int:
        return len(self._running)

    def submit(self, task_id: str) -> asyncio.Task:
        """작업을 백그라운드로 실행한다. 실행 중인 이벤트 루프에서 호출해야 한다."""
        task = asyncio.create_task(self.execute(task_id), name=f"task-{task_id}")
        self._running.add(task)
        task.add_done_callback(self._running.discard)
        return task

    async def wait_all(self) -> None:
        """실행 중인 모든 작업이 끝날 때까지 기다린다."""
        while self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    async def execute(self, task_id: str) -> Optional[TaskRecord]:
        """작업 유형에 맞는 Worker 를 실행하고 최종 레코드를 반환한다."""
        record = self.manager.get_task(task_id)
        if record is None:
            logger.warning(f"Task not found, nothing to execute: {task_id}")
            return None

        logger.info(f"Processing task {task_id} (type: {record.task_type.value})")

        try:
            worker = get_worker(record.task_type, task_id, record.params, self)
            await worker.run()
        except asyncio.CancelledError:
            self._fail_unfinished(task_id, "Task execution was interrupted")
            raise
        except Exception as e:
            logger.exception(f"Task {task_id} crashed")
            self._fail_unfinished(task_id, e)

        final = self.manager.get_task(task_id)
        if final is not None:
            logger.info(f"Task {task_id} finished with status {final.status.value}")
        return final

    def _fail_unfinished(self, task_id: str, error: Union[str, BaseException]) -> None:
        record = self.manager.get_task(task_id)
        if record is None or record.status.is_terminal:
            return
        if record.status is TaskStatus.PENDING:
            self.manager.start_task(task_id)
        self.manager.fail_task(task_id, error)

    async def run_command(self, task_id: str, spec: CommandSpec) -> CommandResult:
        """
        명령 하나를 실행하며 출력 줄을 stdout / stderr 로그로 전달한다.

        프로세스를 시작하지 못한 경우도 실패 결과(success=False)로 돌려준다.
        """
        logger.info(f"[{spec.name}] Executing: {spec.command} (task: {task_id})")
        self.manager.add_log(task_id, LogLevel.INFO, f"Executing: {spec.command}")

        stdout_lines: List[str] = []
        stderr_lines: List[str] = []
        exit_code: Optional[int] = None

        try:
            async for event in self.runner.stream(spec.command, cwd=spec.cwd):
                if isinstance(event, OutputLine):
                    if event.stream == "stdout":
                        stdout_lines.append(event.line)
                    else:
                        stderr_lines.append(event.line)
                    logger.debug(f"[{event.stream.upper()}] {event.line}")
                    self.manager.add_log(task_id, LogLevel(event.stream), event.line)
                else:
                    exit_code = event.exit_code
        except OSError as e:
            logger.error(f"[{spec.name}] Failed to start: {e} (task: {task_id})")
            self.manager.add_log(task_id, LogLevel.ERROR, f"Execution error: {e}")
            return CommandResult(
                name=spec.name,
                success=False,
                stdout="\n".join(stdout_lines),
                stderr=str(e),
            )

        success = exit_code == 0
        self.manager.add_log(
            task_id,
            LogLevel.SUCCESS if success else LogLevel.ERROR,
            f"Process exited with code {exit_code}",
        )

        stderr = "\n".join(stderr_lines)
        if stderr and "warning" not in stderr.lower():
            logger.warning(f"[{spec.name}] stderr: {stderr}")
        logger.info(f"[{spec.name}] {'Success' if success else 'Failed'} (exit code {exit_code})")

        return CommandResult(
            name=spec.name,
            success=success,
            stdout="\n".join(stdout_lines),
            stderr=stderr,
            exit_code=exit_code,
        )

    async def run_sequence(
        self,
        task_id: str,
        specs: List[CommandSpec],
        *,
        stop_on_error: bool,
        report_progress: bool = False,
    ) -> SequenceResult:
        """
        명령들을 순서대로 실행한다.

        Args:
            stop_on_error: True 면 첫 실패에서 멈춘다. False 면 모두 실행한다.
            report_progress: 각 단계가 끝날 때 진행률(단계/전체)을 갱신할지 여부
        """
        results: List[CommandResult] = []
        total = len(specs)

        for index, spec in enumerate(specs, start=1):
            self.manager.add_log(task_id, LogLevel.INFO, f"[{index}/{total}] {spec.name}")

            result = await self.run_command(task_id, spec)
            results.append(result)

            if report_progress:
                self.manager.update_progress(task_id, round(index / total * 100))

            if not result.success and stop_on_error:
                break

        return SequenceResult(
            success=all(result.success for result in results),
            results=results,
        )
