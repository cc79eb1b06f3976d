"""
aws_s3
------

terraform 백엔드 버킷 확인 및 state 파일 업로드를 담당하는 모듈.
"""

from __future__ import annotations

import os
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import FilesystemError, NetworkError
from .logging_utils import get_logger


logger = get_logger(__name__)

# HeadBucket 은 본문이 없어 버킷이 없으면 "404" 코드만 돌려준다.
_NOT_FOUND_CODES = {"404", "NoSuchBucket", "NotFound"}


def new_client(region: str) -> Any:
    try:
        return boto3.client("s3", region_name=region)
    except BotoCoreError as e:
        raise NetworkError(f"AWS 연결 실패: {e}") from e


def bucket_exists(client: Any, bucket: str) -> bool:
    """
    버킷 존재 여부를 확인한다. 예외를 올리지 않는다.

    - 없음(404/NoSuchBucket) -> False
    - 그 밖의 오류(권한, 네트워크 등) -> 경고 로그 후 False
    """
    try:
        client.head_bucket(Bucket=bucket)
    except ClientError as e:
        code = str(e.response.get("Error", {}).get("Code", ""))
        if code in _NOT_FOUND_CODES:
            logger.debug("S3 버킷 없음: %s", bucket)
            return False
        logger.warning("HeadBucket 호출 실패, 버킷이 없는 것으로 간주합니다: %s -> %s", bucket, e)
        return False
    except BotoCoreError as e:
        logger.warning("HeadBucket 호출 실패, 버킷이 없는 것으로 간주합니다: %s -> %s", bucket, e)
        return False
    return True


def object_key(path: str, prefix: str = "") -> str:
    name = os.path.basename(path)
    if not prefix:
        return name
    return f"{prefix.rstrip('/')}/{name}"


def upload_file(client: Any, bucket: str, path: str, prefix: str = "") -> str:
    """
    로컬 파일을 버킷에 업로드하고 사용한 object key 를 반환한다.
    """
    key = object_key(path, prefix)
    logger.info("S3 업로드: %s -> s3://%s/%s", path, bucket, key)
    try:
        with open(path, "rb") as f:
            client.put_object(Bucket=bucket, Key=key, Body=f)
    except OSError as e:
        raise FilesystemError(f"파일을 열 수 없습니다: {path} -> {e}", path=path) from e
    except (ClientError, BotoCoreError) as e:
        raise NetworkError(f"S3 업로드 실패: s3://{bucket}/{key} -> {e}") from e
    return key
