"""환경변수 기반 설정"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Settings(BaseModel):
    """서비스 설정"""

    # 리소스 디렉토리 경로
    home_path: str = "/data/resources"
    match_path: str = "/data/tools/match"
    nginx_path: str = "/usr/share/nginx/html"
    project: str = "wtc"

    # update-reuse 에서 nginx reuse 버전을 자동 계산할 때 쓰는 오프셋
    version_offset: int = Field(default=2, ge=0)

    # 작업 실행/보관
    shell: str = "/bin/bash"
    max_tasks: int = Field(default=100, ge=1)

    # SSE 스트림
    heartbeat_interval: float = Field(default=30.0, gt=0)
    end_delay: float = Field(default=1.0, ge=0)

    # HTTP 서버
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    api_port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """환경변수(.env 포함)에서 설정을 읽는다."""
        load_dotenv()
        return cls(
            home_path=os.getenv("SYNC_HOME_PATH", cls.model_fields["home_path"].default),
            match_path=os.getenv("SYNC_MATCH_PATH", cls.model_fields["match_path"].default),
            nginx_path=os.getenv("SYNC_NGINX_PATH", cls.model_fields["nginx_path"].default),
            project=os.getenv("SYNC_PROJECT", "wtc"),
            version_offset=_env_int("SYNC_VERSION_OFFSET", 2),
            shell=os.getenv("TASK_SHELL", "/bin/bash"),
            max_tasks=_env_int("MAX_TASKS", 100),
            heartbeat_interval=_env_float("STREAM_HEARTBEAT_SECONDS", 30.0),
            end_delay=_env_float("STREAM_END_DELAY_SECONDS", 1.0),
            cors_allow_origins=[
                origin.strip()
                for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
                if origin.strip()
            ],
            api_port=_env_int("API_PORT", 3000),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache
def get_settings() -> Settings:
    """Settings 싱글톤을 반환한다."""
    return Settings.from_env()


def configure_logging(level: str | int = "INFO") -> None:
    """루트 로거를 설정한다."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT)
