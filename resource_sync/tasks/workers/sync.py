"""Facebook / Native 리소스 동기화 Worker"""

from __future__ import annotations

import logging
from shlex import quote
from typing import Any, Dict

from resource_sync.config import Settings
from resource_sync.tasks.commands import CommandSpec
from resource_sync.tasks.models import TaskType
from resource_sync.tasks.registry import register_worker
from resource_sync.tasks.workers.base import BaseWorker

logger = logging.getLogger(__name__)


def build_publish_command(settings: Settings, script: str, name: str, version: str) -> CommandSpec:
    return CommandSpec(
        name=name,
        command=f"cd {quote(settings.nginx_path)} && sh {script} {quote(settings.project)} {version}",
    )


class PublishWorker(BaseWorker):
    """nginx 디렉토리에서 배포 스크립트 하나를 실행하는 Worker"""

    script: str = ""
    display_name: str = ""

    async def execute(self) -> Dict[str, Any]:
        version = self.require_version()
        logger.info(f"{self.display_name} for version: {version} (task: {self.task_id})")

        result = await self.run_command(
            build_publish_command(self.settings, self.script, self.display_name, version)
        )
        return result.model_dump()


@register_worker(TaskType.SYNC_FACEBOOK)
class SyncFacebookWorker(PublishWorker):
    script = "pubfbclient.sh"
    display_name = "Sync Facebook resources"


@register_worker(TaskType.SYNC_NATIVE)
class SyncNativeWorker(PublishWorker):
    script = "pubclient.sh"
    display_name = "Sync Native resources"
