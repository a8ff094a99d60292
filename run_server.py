#!/usr/bin/env python
"""HTTP API 서버 실행 스크립트

사용법:
    python run_server.py                     # API_PORT (기본 3000) 로 실행
    python run_server.py --port 8080
    python run_server.py --reload            # 개발용 자동 재시작
"""

import argparse

import uvicorn
from dotenv import load_dotenv


def main():
    load_dotenv()

    from resource_sync.config import get_settings

    settings = get_settings()

    parser = argparse.ArgumentParser(description="Resource sync API server")
    parser.add_argument("--host", default="0.0.0.0", help="바인딩 주소 (기본: 0.0.0.0)")
    parser.add_argument(
        "--port",
        type=int,
        default=settings.api_port,
        help=f"포트 (기본: API_PORT 또는 {settings.api_port})",
    )
    parser.add_argument("--reload", action="store_true", help="코드 변경 시 자동 재시작")

    args = parser.parse_args()

    uvicorn.run(
        "resource_sync.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
