"""명령 실행 단위와 결과 모델"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class CommandSpec(BaseModel):
    """실행할 셸 명령 하나"""
    name: str
    command: str
    cwd: Optional[str] = None


class CommandResult(BaseModel):
    """명령 실행 결과"""
    name: str
    success: bool
    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None


class SequenceResult(BaseModel):
    """명령 시퀀스 실행 결과"""
    success: bool
    results: List[CommandResult]

    def report(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "results": [result.model_dump() for result in self.results],
        }


class PipelineStageError(RuntimeError):
    """파이프라인 단계 실패 (이후 단계는 실행하지 않는다)"""
