"""외부 명령 실행기 (stdout/stderr 를 줄 단위로 스트리밍)"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from typing import AsyncIterator, Dict, Literal, Optional, Union

from pydantic import BaseModel

logger = logging.getLogger(__name__)

_EOF = None

# 한 줄 최대 길이. 이보다 긴 줄은 이 크기 단위로 잘라서 보낸다
STREAM_LIMIT = 1024 * 1024
READ_CHUNK = 64 * 1024


class OutputLine(BaseModel):
    """프로세스 출력 한 줄"""
    stream: Literal["stdout", "stderr"]
    line: str


class ProcessExit(BaseModel):
    """프로세스 종료 정보"""
    exit_code: int


ProcessEvent = Union[OutputLine, ProcessExit]


class ProcessRunner:
    """
    셸 명령을 실행하고 출력이 나오는 즉시 한 줄씩 돌려준다.

    사용 예:
        async for event in runner.stream("cd /tmp && ls"):
            if isinstance(event, OutputLine):
                ...
            else:
                exit_code = event.exit_code
    """

    def __init__(self, shell: str = "/bin/bash"):
        self.shell = shell

    async def stream(
        self,
        command: str,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> AsyncIterator[ProcessEvent]:
        """
        명령을 실행한다. 출력 이벤트를 모두 보낸 뒤 마지막으로 ProcessExit 를 보낸다.

        Raises:
            OSError: 프로세스를 시작하지 못한 경우 (셸 바이너리 없음, cwd 없음 등)
        """
        proc = await asyncio.create_subprocess_exec(
            self.shell,
            "-c",
            command,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env={**os.environ, **env} if env else None,
            limit=STREAM_LIMIT,
            start_new_session=True,
        )

        queue: asyncio.Queue[Optional[OutputLine]] = asyncio.Queue()
        readers = [
            asyncio.create_task(self._pump(proc.stdout, "stdout", queue)),
            asyncio.create_task(self._pump(proc.stderr, "stderr", queue)),
        ]

        try:
            open_streams = len(readers)
            while open_streams:
                item = await queue.get()
                if item is _EOF:
                    open_streams -= 1
                    continue
                yield item

            exit_code = await proc.wait()
            yield ProcessExit(exit_code=exit_code)
        finally:
            for reader in readers:
                reader.cancel()
            if proc.returncode is None:
                logger.warning(f"Killing unfinished process (pid={proc.pid}): {command}")
                try:
                    # 셸이 띄운 자식 프로세스까지 함께 종료
                    os.killpg(proc.pid, signal.SIGKILL)
                except ProcessLookupError:
                    pass
                await proc.wait()

    @staticmethod
    async def _pump(
        reader: Optional[asyncio.StreamReader],
        stream: Literal["stdout", "stderr"],
        queue: "asyncio.Queue[Optional[OutputLine]]",
    ) -> None:
        """
        스트림을 끝까지 읽어 비어 있지 않은 줄을 큐에 넣는다.

        readline() 은 STREAM_LIMIT 를 넘는 줄에서 예외를 내므로 직접 줄을 나눈다.
        """

        async def emit(raw: bytes) -> None:
            line = raw.decode("utf-8", "replace").rstrip("\r\n")
            if line.strip():
                await queue.put(OutputLine(stream=stream, line=line))

        try:
            if reader is None:
                return
            buffer = b""
            while True:
                chunk = await reader.read(READ_CHUNK)
                if not chunk:
                    break
                buffer += chunk
                *lines, buffer = buffer.split(b"\n")
                for raw in lines:
                    await emit(raw)
                while len(buffer) >= STREAM_LIMIT:
                    await emit(buffer[:STREAM_LIMIT])
                    buffer = buffer[STREAM_LIMIT:]
            if buffer:
                await emit(buffer)
        finally:
            queue.put_nowait(_EOF)
