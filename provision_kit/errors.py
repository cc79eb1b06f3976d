"""
errors
------

provision_kit 전역에서 사용하는 예외 정의.

- ConfigurationError : 필수 환경변수 누락 (CLI 는 예약된 종료 코드로 종료)
- ExternalCommandError : 외부 명령(terraform/ansible-galaxy/aws) 실패
- NetworkError : 아티팩트 다운로드/S3 업로드 실패
- FilesystemError : 파일/디렉토리 생성, 쓰기, 읽기 실패

버킷 존재 여부 확인 실패(404 외 오류)는 예외가 아니라 경고 로그 + '없음' 으로 처리한다.
"""

from __future__ import annotations

from typing import Sequence


class ProvisionError(RuntimeError):
    """치명적인 실행 오류의 공통 부모."""


class ConfigurationError(ValueError):
    def __init__(self, missing: Sequence[str] = (), *, message: str | None = None) -> None:
        self.missing = sorted(set(missing))
        if message is None:
            message = "필수 환경변수가 누락되었습니다: " + ", ".join(self.missing)
        super().__init__(message)


class ExternalCommandError(ProvisionError):
    def __init__(self, message: str, *, cmd: Sequence[str], returncode: int | None = None) -> None:
        super().__init__(message)
        self.cmd = list(cmd)
        self.returncode = returncode


class NetworkError(ProvisionError):
    pass


class FilesystemError(ProvisionError):
    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.path = path
