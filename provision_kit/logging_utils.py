import logging
import sys


def setup_logging(verbosity: int = 0, quiet: bool = False) -> None:
    level = logging.INFO
    if verbosity >= 1:
        level = logging.DEBUG
    if quiet:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    # boto3/urllib3 는 DEBUG 에서 너무 시끄럽다.
    for noisy in ("botocore", "boto3", "urllib3", "s3transfer"):
        logging.getLogger(noisy).setLevel(max(level, logging.INFO))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_env_export(logger: logging.Logger, name: str, value: str) -> None:
    """값 자체는 남기지 않고 이름과 길이만 기록한다."""
    logger.info("%s 환경변수를 내보냈습니다 (value length=%d)", name, len(value))
