from __future__ import annotations

import subprocess
from typing import Iterable, Mapping, Sequence, Tuple

from .errors import ExternalCommandError
from .logging_utils import get_logger


logger = get_logger(__name__)


# (실행 파일, 인자 목록). 순서대로 실행된다.
Command = Tuple[str, Sequence[str]]


def run_command(
    cmd: Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
) -> None:
    """
    subprocess 실행 공통 유틸.

    stdout/stderr 는 캡처하지 않고 현재 터미널에 그대로 흘린다.
    terraform apply 처럼 오래 걸리는 명령도 있으므로 timeout 은 두지 않는다.
    """
    logger.info("명령 실행: %s", " ".join(cmd))
    try:
        subprocess.run(  # noqa: S603
            list(cmd),
            check=True,
            cwd=cwd,
            env=dict(env) if env is not None else None,
        )
    except FileNotFoundError as e:
        raise ExternalCommandError(
            f"필요한 명령을 찾을 수 없습니다: {cmd[0]} (terraform/ansible-galaxy/aws 가 설치되어 있는지 확인하세요)",
            cmd=cmd,
        ) from e
    except subprocess.CalledProcessError as e:
        raise ExternalCommandError(
            f"명령 실행 실패: {list(cmd)} (exit={e.returncode})",
            cmd=cmd,
            returncode=e.returncode,
        ) from e


def run_commands(
    commands: Iterable[Command],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
) -> None:
    """
    (실행 파일, 인자) 목록을 순서대로 실행한다.
    첫 실패에서 멈추고 ExternalCommandError 를 그대로 올린다.
    """
    for executable, args in commands:
        run_command([executable, *args], cwd=cwd, env=env)
