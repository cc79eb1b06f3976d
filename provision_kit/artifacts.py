"""
artifacts
---------

GitHub 릴리즈에서 lambda 배포 아카이브(zip)를 내려받아
작업 디렉토리의 release/ 아래에 저장하는 모듈.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from .config import ProvisionConfig
from .errors import FilesystemError, NetworkError
from .logging_utils import get_logger


logger = get_logger(__name__)

RELEASE_DIR = "release"
_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class Artifact:
    name: str
    url_template: str
    file_name: str
    version_field: str

    def url(self, version: str) -> str:
        return self.url_template.format(version=version)

    def version(self, cfg: ProvisionConfig) -> str:
        return getattr(cfg, self.version_field)


ARTIFACTS: List[Artifact] = [
    Artifact(
        "inventory",
        "https://github.com/GSA/grace-inventory/releases/download/{version}/grace-inventory-lambda.zip",
        "grace-inventory-lambda.zip",
        "inventory_version",
    ),
    Artifact(
        "ansible",
        "https://github.com/GSA/grace-ansible-lambda/releases/download/{version}/grace-ansible-lambda.zip",
        "grace-ansible-lambda.zip",
        "ansible_version",
    ),
    Artifact(
        "rotate-keypair",
        "https://github.com/GSA/grace-ansible-lambda/releases/download/{version}/grace-ansible-rotate-keypair.zip",
        "grace-ansible-rotate-keypair.zip",
        "ansible_version",
    ),
    Artifact(
        "network",
        "https://github.com/GSA/grace-paas-network/releases/download/{version}/grace-paas-associate-zone.zip",
        "grace-paas-associate-zone.zip",
        "network_version",
    ),
    Artifact(
        "secrets",
        "https://github.com/GSA/grace-secrets-sync-lambda/releases/download/{version}/grace-secrets-sync-lambda.zip",
        "grace-secrets-sync-lambda.zip",
        "secrets_version",
    ),
]

ARTIFACTS_BY_NAME: Dict[str, Artifact] = {a.name: a for a in ARTIFACTS}


def create_release_path(file_name: str, work_dir: Optional[str] = None) -> str:
    """
    <work_dir>/release/<file_name> 경로를 만든다. release 디렉토리가 이미 있어도 괜찮다.
    """
    base = work_dir if work_dir is not None else os.getcwd()
    release_dir = os.path.join(base, RELEASE_DIR)
    try:
        os.makedirs(release_dir, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"release 디렉토리 생성 실패: {release_dir} -> {e}", path=release_dir) from e
    return os.path.join(release_dir, file_name)


def download(url: str, path: str, session: Any = None) -> str:
    """
    url 의 응답 본문을 path 에 그대로 저장한다.

    재시도/이어받기는 하지 않는다. 도중에 실패하면 잘린 파일이 남을 수 있다.
    """
    http = session if session is not None else requests
    logger.info("다운로드: %s -> %s", url, path)
    # requests.RequestException 은 OSError 의 하위 클래스라 먼저 잡아야 한다.
    try:
        with http.get(url, stream=True) as resp:
            resp.raise_for_status()
            with open(path, "wb") as f:
                for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
    except requests.RequestException as e:
        raise NetworkError(f"다운로드 실패: {url} -> {e}") from e
    except OSError as e:
        raise FilesystemError(f"{path} 저장 실패: {e}", path=path) from e
    return path


def fetch(url_template: str, version: str, dest_file_name: str,
          work_dir: Optional[str] = None, session: Any = None) -> str:
    path = create_release_path(dest_file_name, work_dir)
    return download(url_template.format(version=version), path, session=session)


def fetch_artifact(cfg: ProvisionConfig, name: str,
                   work_dir: Optional[str] = None, session: Any = None) -> str:
    try:
        artifact = ARTIFACTS_BY_NAME[name]
    except KeyError as e:
        raise ValueError(
            f"알 수 없는 아티팩트입니다: {name!r} (허용: {', '.join(ARTIFACTS_BY_NAME)})"
        ) from e
    return fetch(
        artifact.url_template,
        artifact.version(cfg),
        artifact.file_name,
        work_dir=work_dir,
        session=session,
    )
