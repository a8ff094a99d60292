"""리소스 무결성 검사 Worker"""

from __future__ import annotations

import logging
from shlex import quote
from typing import Any, Dict, List

from resource_sync.config import Settings
from resource_sync.tasks.commands import CommandSpec
from resource_sync.tasks.models import TaskType
from resource_sync.tasks.registry import register_worker
from resource_sync.tasks.workers.base import BaseWorker

logger = logging.getLogger(__name__)


def build_integrity_commands(settings: Settings, version: str) -> List[CommandSpec]:
    """iOS/Android manifest 검사와 match_version.sh 실행 명령을 만든다."""
    project_dir = f"{settings.home_path}/{settings.project}"
    resource_root = quote(f"{project_dir}/{version}/res_oldvegas/")
    match_bin = quote(f"{settings.match_path}/match")

    return [
        CommandSpec(
            name="Check iOS resources",
            command=(
                f"{match_bin} -seed {quote(f'{project_dir}/assets_config/common_ios/project.manifest')}"
                f" -root {resource_root}"
            ),
        ),
        CommandSpec(
            name="Check Android resources",
            command=(
                f"{match_bin} -seed {quote(f'{project_dir}/assets_config/common_android/project.manifest')}"
                f" -root {resource_root}"
            ),
        ),
        CommandSpec(
            name="Match version",
            command=(
                f"cd {quote(settings.match_path)}"
                f" && bash match_version.sh {quote(settings.project)} {version}"
            ),
        ),
    ]


@register_worker(TaskType.CHECK_INTEGRITY)
class CheckIntegrityWorker(BaseWorker):
    """리소스 무결성 검사. 앞선 검사가 실패해도 세 검사를 모두 실행한다."""

    async def execute(self) -> Dict[str, Any]:
        version = self.require_version()
        logger.info(f"Starting resource integrity check for version: {version} (task: {self.task_id})")

        outcome = await self.run_sequence(
            build_integrity_commands(self.settings, version),
            stop_on_error=False,
        )
        return outcome.report()
