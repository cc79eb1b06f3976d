"""
backend
-------

terraform state 백엔드 선택(backend.tf 생성) 및
로컬 state 파일의 S3 보관을 담당하는 모듈.

버킷은 terraform 이 처음 apply 될 때 만들어지므로,
첫 실행은 로컬 백엔드로 돌고 이후 실행부터 S3 백엔드를 사용한다.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from . import aws_s3
from .config import ProvisionConfig
from .errors import FilesystemError
from .logging_utils import get_logger


logger = get_logger(__name__)

BACKEND_FILE = "backend.tf"

LOCAL = "local"
REMOTE = "remote"

_LOCAL_TEMPLATE = """terraform {{
\tbackend "local" {{
\t\tpath = "{state_file}"
\t}}
}}"""

_REMOTE_TEMPLATE = """terraform {{
\tbackend "s3" {{
\t\tbucket = "{bucket}"
\t\tkey    = "{state_file}"
\t\tregion = "{region}"
\t}}
}}"""


@dataclass(frozen=True)
class BackendDeclaration:
    kind: str
    bucket: str
    state_file: str
    text: str


def render_backend(cfg: ProvisionConfig, remote: bool) -> str:
    if remote:
        return _REMOTE_TEMPLATE.format(
            bucket=cfg.backend_bucket,
            state_file=cfg.state_file,
            region=cfg.region,
        )
    return _LOCAL_TEMPLATE.format(state_file=cfg.state_file)


def select_backend(cfg: ProvisionConfig, client: Any) -> BackendDeclaration:
    """
    백엔드 버킷이 있으면 s3 백엔드, 없으면(확인 실패 포함) local 백엔드를 선택한다.
    """
    remote = aws_s3.bucket_exists(client, cfg.backend_bucket)
    kind = REMOTE if remote else LOCAL
    logger.info("terraform 백엔드 선택: %s (bucket=%s)", kind, cfg.backend_bucket)
    return BackendDeclaration(
        kind=kind,
        bucket=cfg.backend_bucket,
        state_file=cfg.state_file,
        text=render_backend(cfg, remote),
    )


def write_backend(declaration: BackendDeclaration, path: str = BACKEND_FILE) -> str:
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(declaration.text)
    except OSError as e:
        raise FilesystemError(f"{path} 파일 쓰기 실패: {e}", path=path) from e
    logger.info("%s 작성 완료 (%s)", path, declaration.kind)
    return path


def init_backend(cfg: ProvisionConfig, client: Any, work_dir: str = ".") -> BackendDeclaration:
    declaration = select_backend(cfg, client)
    write_backend(declaration, os.path.join(work_dir, BACKEND_FILE))
    return declaration


def save_backend(cfg: ProvisionConfig, client_factory, work_dir: str = ".", prefix: str = "") -> bool:  # noqa: ANN001
    """
    로컬 state 파일을 백엔드 버킷에 올린다. 업로드했으면 True.

    - 로컬 state 파일이 없으면 이미 원격 백엔드를 쓰고 있는 것이므로 아무것도 하지 않는다.
      (client_factory 도 호출하지 않는다)
    - 버킷이 없으면 건너뛴다.
    """
    path = os.path.join(work_dir, cfg.state_file)
    if not os.path.exists(path):
        logger.debug("로컬 state 파일이 없어 보관을 건너뜁니다: %s", path)
        return False

    client = client_factory()
    if not aws_s3.bucket_exists(client, cfg.backend_bucket):
        # TODO: 버킷 없이 apply 가 실패한 경우 terraform destroy 로 정리하는 경로가 필요하다.
        logger.warning("백엔드 버킷이 없어 state 업로드를 건너뜁니다: %s", cfg.backend_bucket)
        return False

    aws_s3.upload_file(client, cfg.backend_bucket, path, prefix=prefix)
    return True
