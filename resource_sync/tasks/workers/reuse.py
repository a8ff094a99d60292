"""Reuse 버전 교체 Worker"""

from __future__ import annotations

import logging
from shlex import quote
from typing import Any, Dict, List

from resource_sync.config import Settings
from resource_sync.tasks.commands import CommandSpec
from resource_sync.tasks.models import TaskType
from resource_sync.tasks.registry import register_worker
from resource_sync.tasks.workers.base import BaseWorker
from resource_sync.utils.version import decrement_version

logger = logging.getLogger(__name__)

REUSE_DIR = "reuse_version"


def build_reuse_commands(settings: Settings, version: str, nginx_version: str) -> List[CommandSpec]:
    """리소스/nginx 디렉토리의 버전 폴더를 reuse_version 으로 옮기는 명령을 만든다."""
    project = settings.project
    moves = [
        (f"Move {project} version to reuse", f"{settings.home_path}/{project}", version),
        (f"Move {project}_fb version to reuse", f"{settings.home_path}/{project}_fb", version),
        (f"Move nginx {project} to reuse", f"{settings.nginx_path}/{project}", nginx_version),
        (f"Move nginx {project}_fb to reuse", f"{settings.nginx_path}/{project}_fb", nginx_version),
    ]
    return [
        CommandSpec(name=name, command=f"cd {quote(directory)} && mv {source} {REUSE_DIR}")
        for name, directory, source in moves
    ]


@register_worker(TaskType.UPDATE_REUSE)
class UpdateReuseWorker(BaseWorker):
    """
    Reuse 버전 교체.

    디렉토리 이동 중 하나라도 실패하면 나머지는 실행하지 않는다
    (일부만 이동된 상태가 더 번지지 않도록).
    """

    async def execute(self) -> Dict[str, Any]:
        version = self.require_version()
        nginx_version = self.require_version("nginx_reuse_version", required=False)
        if nginx_version is None:
            nginx_version = decrement_version(version, self.settings.version_offset)

        logger.info(f"Updating reuse version: {version} -> {REUSE_DIR} (task: {self.task_id})")
        logger.info(f"Nginx reuse version: {nginx_version} -> {REUSE_DIR} (task: {self.task_id})")

        outcome = await self.run_sequence(
            build_reuse_commands(self.settings, version, nginx_version),
            stop_on_error=True,
        )
        if not outcome.success:
            failed = outcome.results[-1].name
            logger.error(f"Failed to update reuse version at '{failed}' (task: {self.task_id})")

        report = outcome.report()
        report["nginx_reuse_version"] = nginx_version
        return report
