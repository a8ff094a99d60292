# tests/test_runner.py

from __future__ import annotations

import asyncio
from typing import List

import pytest

from resource_sync.tasks.runner import STREAM_LIMIT, OutputLine, ProcessExit, ProcessRunner


async def _collect(runner: ProcessRunner, command: str, **kwargs) -> List[object]:
    return [event async for event in runner.stream(command, **kwargs)]


@pytest.mark.asyncio
async def test_stream_yields_lines_then_exit() -> None:
    events = await _collect(ProcessRunner(shell="/bin/sh"), "echo one; echo two; exit 3")

    lines = [event for event in events if isinstance(event, OutputLine)]
    assert [(line.stream, line.line) for line in lines] == [("stdout", "one"), ("stdout", "two")]
    assert isinstance(events[-1], ProcessExit)
    assert events[-1].exit_code == 3


@pytest.mark.asyncio
async def test_stream_separates_stderr_and_skips_blank_lines() -> None:
    events = await _collect(
        ProcessRunner(shell="/bin/sh"),
        "echo out; echo; echo '   '; echo err 1>&2",
    )

    lines = {(event.stream, event.line) for event in events if isinstance(event, OutputLine)}
    assert lines == {("stdout", "out"), ("stderr", "err")}
    assert events[-1] == ProcessExit(exit_code=0)


@pytest.mark.asyncio
async def test_stream_honours_cwd_and_env(tmp_path) -> None:
    events = await _collect(
        ProcessRunner(shell="/bin/sh"),
        'pwd; echo "$SYNC_TEST_VALUE"',
        cwd=str(tmp_path),
        env={"SYNC_TEST_VALUE": "hello"},
    )

    lines = [event.line for event in events if isinstance(event, OutputLine)]
    assert lines[0].endswith(tmp_path.name)
    assert lines[1] == "hello"


@pytest.mark.asyncio
async def test_missing_cwd_raises_oserror(tmp_path) -> None:
    with pytest.raises(OSError):
        await _collect(ProcessRunner(shell="/bin/sh"), "echo hi", cwd=str(tmp_path / "nope"))


@pytest.mark.asyncio
async def test_missing_shell_raises_oserror(tmp_path) -> None:
    with pytest.raises(OSError):
        await _collect(ProcessRunner(shell=str(tmp_path / "no-shell")), "echo hi")


@pytest.mark.asyncio
async def test_abandoned_stream_kills_process() -> None:
    runner = ProcessRunner(shell="/bin/sh")
    stream = runner.stream("echo started; sleep 30; echo never")

    first = await stream.__anext__()
    assert first == OutputLine(stream="stdout", line="started")

    # closing the generator early must not leave the sleep running
    await asyncio.wait_for(stream.aclose(), timeout=10)


@pytest.mark.asyncio
async def test_oversized_line_does_not_swallow_later_output() -> None:
    events = await _collect(
        ProcessRunner(shell="/bin/sh"),
        "head -c 2000000 /dev/zero | tr '\\0' x; echo; echo tail",
    )

    lines = [event.line for event in events if isinstance(event, OutputLine)]
    assert lines[-1] == "tail"
    assert all(set(line) == {"x"} for line in lines[:-1])
    assert sum(len(line) for line in lines[:-1]) == 2_000_000
    assert len(lines[0]) == STREAM_LIMIT
    assert events[-1] == ProcessExit(exit_code=0)
