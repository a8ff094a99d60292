"""Worker 모듈"""

# Worker를 import하면 자동으로 registry에 등록됨
from resource_sync.tasks.workers.integrity import CheckIntegrityWorker
from resource_sync.tasks.workers.sync import SyncFacebookWorker, SyncNativeWorker
from resource_sync.tasks.workers.reuse import UpdateReuseWorker
from resource_sync.tasks.workers.full_sync import FullSyncWorker

__all__ = [
    "CheckIntegrityWorker",
    "SyncFacebookWorker",
    "SyncNativeWorker",
    "UpdateReuseWorker",
    "FullSyncWorker",
]
