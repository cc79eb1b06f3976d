from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Mapping, MutableMapping, Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigurationError
from .logging_utils import get_logger, log_env_export


logger = get_logger(__name__)


ENV_FILES_DEFAULT_ORDER = [".env", ".env.local"]

PRODUCTION = "production"
DEVELOPMENT = "development"


def load_env_files(base_dir: str = ".",
                   files: Optional[List[str]] = None) -> None:
    """
    주어진 디렉토리에서 .env 계열 파일을 순서대로 로드한다.
    후순위 파일이 같은 키를 덮어쓴다.
    """
    order = files or ENV_FILES_DEFAULT_ORDER
    for name in order:
        path = os.path.join(base_dir, name)
        if os.path.exists(path):
            logger.debug("env 파일 로드: %s", path)
            load_dotenv(path, override=True)


def normalize_app_env(value: str) -> str:
    """production(대소문자 무시)이 아니면 전부 development 로 취급한다."""
    if value.lower() == PRODUCTION:
        return PRODUCTION
    return DEVELOPMENT


def _split_list(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(raw.split(","))


@dataclass(frozen=True)
class EnvVar:
    name: str
    value: str


@dataclass(frozen=True)
class ProvisionConfig:
    # 필수
    project_name: str
    alert_email: str

    app_env: str = DEVELOPMENT
    region: str = "us-east-1"
    saml_provider_arn: str = ""
    secops_account_ids: Tuple[str, ...] = ()

    # 릴리즈 아티팩트 버전
    inventory_version: str = "v0.1.7"
    ansible_version: str = "v0.0.28"
    network_version: str = "v0.6.10"
    secrets_version: str = "v0.0.3rc"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProvisionConfig":
        """
        환경변수 스냅샷에서 설정을 읽는다. environ 을 생략하면 os.environ 을 사용한다.

        필수값(projectName, alertEmail)이 하나라도 없으면 ConfigurationError.
        """
        env = os.environ if environ is None else environ

        missing: List[str] = []
        def req(name: str) -> str:
            if name not in env:
                missing.append(name)
                return ""
            return env[name]

        project_name = req("projectName")
        alert_email = req("alertEmail")
        if missing:
            raise ConfigurationError(missing)

        return cls(
            project_name=project_name,
            alert_email=alert_email,
            app_env=normalize_app_env(env.get("CIRCLE_BRANCH", "sandbox")),
            region=env.get("region", "us-east-1"),
            saml_provider_arn=env.get("SAML_PROVIDER_ARN", ""),
            secops_account_ids=_split_list(env.get("secopsAccounts")),
            inventory_version=env.get("inventoryVersion", "v0.1.7"),
            ansible_version=env.get("ansibleVersion", "v0.0.28"),
            network_version=env.get("networkVersion", "v0.6.10"),
            secrets_version=env.get("secretsVersion", "v0.0.3rc"),
        )

    @property
    def backend_bucket(self) -> str:
        return f"{self.project_name}-{self.app_env}-backend"

    @property
    def state_file(self) -> str:
        return f"{self.backend_bucket}.tfstate"

    @property
    def ansible_bucket_url(self) -> str:
        return f"s3://{self.project_name}-{self.app_env}-ansible-lambda/ansible/".lower()

    def exports(self) -> List[EnvVar]:
        """terraform 이 읽는 TF_VAR_* 및 AWS_REGION 값 목록 (순서 고정)."""
        return [
            EnvVar("TF_VAR_env", self.app_env),
            EnvVar("TF_VAR_email_address", self.alert_email),
            EnvVar("TF_VAR_project_name", self.project_name),
            EnvVar("TF_VAR_region", self.region),
            EnvVar("TF_VAR_secops_accounts", ",".join(self.secops_account_ids)),
            EnvVar("TF_VAR_saml_provider_arn", self.saml_provider_arn),
            EnvVar("AWS_REGION", self.region),
        ]


def override_directives(environ: Mapping[str, str], app_env: str) -> List[EnvVar]:
    """
    `<APP_ENV 대문자>_` 로 시작하는 변수를 접두어를 뗀 이름으로 내보낼 목록을 만든다.

    예) app_env=production, PRODUCTION_region=eu-west-1 -> region=eu-west-1
    """
    prefix = app_env.upper() + "_"
    directives: List[EnvVar] = []
    for key, value in environ.items():
        if not key.startswith(prefix):
            continue
        if key == prefix:
            raise ConfigurationError(
                message=f"접두어만 있고 이름이 없는 환경변수는 내보낼 수 없습니다: {key}"
            )
        directives.append(EnvVar(key[len(prefix):], value))
    return directives


@dataclass(frozen=True)
class Resolution:
    config: ProvisionConfig
    overrides: List[EnvVar] = field(default_factory=list)

    @property
    def exports(self) -> List[EnvVar]:
        return self.config.exports()


def resolve(environ: Optional[Mapping[str, str]] = None) -> Resolution:
    """
    2단계 설정 해석.

    1) 원본 환경에서 설정을 한 번 읽어 app_env 를 결정한다.
    2) `<APP_ENV>_` 접두 변수를 일반 이름으로 덮어쓴 사본을 만든다.
    3) 1) 의 결과는 버리고, 사본에서 처음부터 다시 읽는다.

    입력 매핑은 변경하지 않는다. 실제 프로세스 환경 반영은 apply_resolution 에서 한다.
    """
    snapshot = dict(os.environ if environ is None else environ)

    first = ProvisionConfig.from_env(snapshot)
    overrides = override_directives(snapshot, first.app_env)

    merged = dict(snapshot)
    for d in overrides:
        merged[d.name] = d.value

    final = ProvisionConfig.from_env(merged)
    return Resolution(config=final, overrides=overrides)


def apply_resolution(resolution: Resolution,
                     target: Optional[MutableMapping[str, str]] = None) -> None:
    """
    override 와 export 결과를 대상 환경(기본 os.environ)에 기록한다.
    하위 terraform/aws 프로세스는 이 환경을 상속받는다.
    """
    env = os.environ if target is None else target
    for var in [*resolution.overrides, *resolution.exports]:
        try:
            env[var.name] = var.value
        except (OSError, ValueError) as e:
            raise ConfigurationError(
                message=f"{var.name} 환경변수를 설정할 수 없습니다: {e}"
            ) from e
        log_env_export(logger, var.name, var.value)


def load_config(environ: Optional[MutableMapping[str, str]] = None) -> ProvisionConfig:
    """resolve + apply_resolution 을 한 번에 수행하고 최종 설정을 돌려준다."""
    env = os.environ if environ is None else environ
    resolution = resolve(env)
    apply_resolution(resolution, env)
    return resolution.config
