"""버전 문자열 유틸리티 (예: v885)"""

from __future__ import annotations

import re
from typing import NamedTuple

VERSION_PATTERN = re.compile(r"([A-Za-z]*)([0-9]+)")


class VersionError(ValueError):
    """버전 처리 오류의 부모 클래스"""


class InvalidVersionFormat(VersionError):
    """<영문 접두사><정수> 형식이 아닌 버전"""


class NegativeVersionError(VersionError):
    """감소 결과가 음수가 되는 경우"""


class ParsedVersion(NamedTuple):
    prefix: str
    number: int


def parse_version(version: str) -> ParsedVersion:
    """버전 문자열을 접두사와 숫자로 분리한다."""
    match = VERSION_PATTERN.fullmatch(version or "")
    if not match:
        raise InvalidVersionFormat(
            f"Invalid version format: {version}. Expected format: v123 or 123"
        )
    return ParsedVersion(prefix=match.group(1), number=int(match.group(2)))


def decrement_version(version: str, offset: int = 2) -> str:
    """
    버전 번호에서 offset을 뺀 버전을 반환한다.

    사용 예:
        decrement_version("v885", 2)  # "v883"
        decrement_version("885", 2)   # "883"
    """
    parsed = parse_version(version)
    new_number = parsed.number - offset

    if new_number < 0:
        raise NegativeVersionError(
            f"Version calculation resulted in negative number: "
            f"{version} - {offset} = {new_number}"
        )

    return f"{parsed.prefix}{new_number}"


def validate_version(version: str) -> bool:
    """버전 형식이 올바른지 확인한다."""
    try:
        parse_version(version)
    except InvalidVersionFormat:
        return False
    return True
