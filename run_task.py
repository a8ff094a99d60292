#!/usr/bin/env python
"""작업 하나를 현재 프로세스에서 실행하고 이벤트를 실시간으로 출력하는 스크립트

사용법:
    python run_task.py check-integrity v885
    python run_task.py update-reuse v885 --nginx-reuse-version v883
    python run_task.py full-sync v885 --skip-check

작업이 completed 이고 결과의 success 가 False 가 아니면 0, 아니면 1 로 종료한다.
"""

import argparse
import asyncio
import json
import sys

from dotenv import load_dotenv


def print_event(event) -> None:
    if event.type == "log":
        print(f"[{event.log.level.value}] {event.log.message}", flush=True)
    else:
        print(f"-- {event.task.status.value} ({event.task.progress}%)", flush=True)


async def run(args: argparse.Namespace) -> int:
    from resource_sync.config import configure_logging, get_settings
    from resource_sync.tasks.executor import TaskExecutor
    from resource_sync.tasks.manager import TaskManager
    from resource_sync.tasks.models import TaskStatus, TaskType

    settings = get_settings()
    configure_logging(settings.log_level)

    manager = TaskManager(max_tasks=settings.max_tasks)
    executor = TaskExecutor(manager, settings=settings)

    task_type = TaskType(args.task_type)
    params = {"version": args.version}
    if task_type is TaskType.UPDATE_REUSE and args.nginx_reuse_version:
        params["nginx_reuse_version"] = args.nginx_reuse_version
    if task_type is TaskType.FULL_SYNC:
        params["skip_check"] = args.skip_check

    task_id = manager.create_task(task_type, params)
    manager.subscribe(task_id, print_event)
    try:
        record = await executor.execute(task_id)
    finally:
        manager.unsubscribe(task_id, print_event)

    if record is None:
        return 1

    if record.status is TaskStatus.FAILED:
        print(f"\nTask failed: {record.error}")
        return 1

    print("\n" + json.dumps(record.result, indent=2, ensure_ascii=False))
    success = record.status is TaskStatus.COMPLETED and (record.result or {}).get("success", True)
    return 0 if success else 1


def main():
    load_dotenv()

    from resource_sync.tasks.models import TaskType
    from resource_sync.utils.version import validate_version

    parser = argparse.ArgumentParser(description="Resource sync task runner")
    parser.add_argument(
        "task_type",
        choices=[task_type.value for task_type in TaskType],
        help="실행할 작업 유형",
    )
    parser.add_argument("version", help="리소스 버전 (예: v885)")
    parser.add_argument(
        "--nginx-reuse-version",
        default=None,
        help="update-reuse 에서 nginx 쪽에 쓸 버전 (기본: version - SYNC_VERSION_OFFSET)",
    )
    parser.add_argument(
        "--skip-check",
        action="store_true",
        help="full-sync 에서 무결성 검사 단계를 건너뛴다",
    )

    args = parser.parse_args()

    if not validate_version(args.version):
        parser.error(f"Invalid version format: {args.version}")
    if args.nginx_reuse_version and not validate_version(args.nginx_reuse_version):
        parser.error(f"Invalid version format: {args.nginx_reuse_version}")

    try:
        exit_code = asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\nTask interrupted.")
        sys.exit(130)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
