# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional, Tuple

from resource_sync.tasks.runner import OutputLine, ProcessEvent, ProcessExit


@dataclass
class ScriptedOutcome:
    stdout: Tuple[str, ...] = ()
    stderr: Tuple[str, ...] = ()
    exit_code: int = 0
    error: Optional[BaseException] = None


class FakeRunner:
    """
    Deterministic ProcessRunner for unit tests.

    - Records every command it is asked to run
    - The first script whose pattern is a substring of the command decides the outcome
    - Unmatched commands exit 0 with no output
    """

    def __init__(self) -> None:
        self.commands: List[str] = []
        self._scripts: List[Tuple[str, ScriptedOutcome]] = []

    def script(
        self,
        pattern: str,
        *,
        stdout: Tuple[str, ...] = (),
        stderr: Tuple[str, ...] = (),
        exit_code: int = 0,
        error: Optional[BaseException] = None,
    ) -> None:
        self._scripts.append((pattern, ScriptedOutcome(stdout, stderr, exit_code, error)))

    def _outcome(self, command: str) -> ScriptedOutcome:
        for pattern, outcome in self._scripts:
            if pattern in command:
                return outcome
        return ScriptedOutcome()

    async def stream(
        self,
        command: str,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> AsyncIterator[ProcessEvent]:
        self.commands.append(command)
        outcome = self._outcome(command)
        if outcome.error is not None:
            raise outcome.error
        for line in outcome.stdout:
            yield OutputLine(stream="stdout", line=line)
        for line in outcome.stderr:
            yield OutputLine(stream="stderr", line=line)
        yield ProcessExit(exit_code=outcome.exit_code)


@dataclass
class RecordingExecutor:
    """Executor stand-in for route tests: remembers submissions, runs nothing."""

    submitted: List[str] = field(default_factory=list)

    def submit(self, task_id: str) -> None:
        self.submitted.append(task_id)


class EventRecorder:
    """Listener that keeps every event it receives."""

    def __init__(self) -> None:
        self.events = []

    def __call__(self, event) -> None:
        self.events.append(event)

    @property
    def types(self) -> List[str]:
        return [event.type for event in self.events]

    @property
    def statuses(self) -> List[str]:
        return [event.task.status.value for event in self.events if event.type == "update"]

    @property
    def messages(self) -> List[str]:
        return [event.log.message for event in self.events if event.type == "log"]
