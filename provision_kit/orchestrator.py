from __future__ import annotations

import os
from typing import Any, Callable, Dict, List, Optional, Sequence

from . import artifacts, backend
from .aws_s3 import new_client
from .config import ProvisionConfig
from .errors import FilesystemError
from .logging_utils import get_logger
from .subprocess_utils import Command, run_commands


logger = get_logger(__name__)

PLAN_FILE = "plan.tfplan"
ANSIBLE_DIR = "../ansible/"

DEFAULT_TARGET = "validate"


def _download_target(name: str) -> str:
    return f"download-{name}"


DOWNLOAD_TARGETS: List[str] = [_download_target(a.name) for a in artifacts.ARTIFACTS]

# CLI 등에서 사용할 수 있도록 타깃 이름을 상수로 노출
ALL_TARGETS: List[str] = [
    "validate",
    "init",
    "init-backend",
    "plan",
    "apply",
    "save-backend",
    "test",
    "deploy",
    "get-roles",
    "upload-ansible",
    *DOWNLOAD_TARGETS,
]


class Orchestrator:
    """
    타깃 실행기.

    각 타깃은 고정된 의존 타깃 → 외부 명령 순으로 실행된다.
    하나의 Orchestrator 안에서 같은 타깃은 한 번만 실행된다.
    (deploy 가 plan 과 apply 를 모두 요구해도 validate 는 한 번만 돈다)
    """

    def __init__(
        self,
        cfg: ProvisionConfig,
        *,
        work_dir: str = ".",
        s3_client_factory: Optional[Callable[[], Any]] = None,
        http_session: Any = None,
        runner: Callable[..., Any] = run_commands,
    ) -> None:
        self.cfg = cfg
        self.work_dir = work_dir
        self._s3_client_factory = s3_client_factory or (lambda: new_client(cfg.region))
        self._s3_client: Any = None
        self._http_session = http_session
        self._runner = runner
        self._done: List[str] = []
        self._targets: Dict[str, Callable[[], None]] = {
            "validate": self.validate,
            "init": self.init,
            "init-backend": self.init_backend,
            "plan": self.plan,
            "apply": self.apply,
            "save-backend": self.save_backend,
            "test": self.test,
            "deploy": self.deploy,
            "get-roles": self.get_roles,
            "upload-ansible": self.upload_ansible,
        }
        for a in artifacts.ARTIFACTS:
            self._targets[_download_target(a.name)] = self._make_download(a.name)

    @property
    def executed(self) -> List[str]:
        return list(self._done)

    def s3_client(self) -> Any:
        if self._s3_client is None:
            self._s3_client = self._s3_client_factory()
        return self._s3_client

    def run(self, name: str) -> None:
        """타깃을 실행한다. 이미 실행된 타깃이면 건너뛴다."""
        if name in self._done:
            logger.debug("이미 실행된 타깃: %s", name)
            return
        try:
            target = self._targets[name]
        except KeyError as e:
            raise ValueError(
                f"알 수 없는 타깃입니다: {name!r} (허용: {', '.join(ALL_TARGETS)})"
            ) from e
        logger.info("타깃 실행: %s", name)
        target()
        self._done.append(name)

    def _deps(self, *names: str) -> None:
        for name in names:
            self.run(name)

    def _exec(self, commands: Sequence[Command]) -> None:
        self._runner(list(commands), cwd=self.work_dir)

    # --- 아티팩트 ---

    def _make_download(self, artifact_name: str) -> Callable[[], None]:
        def _download() -> None:
            artifacts.fetch_artifact(
                self.cfg,
                artifact_name,
                work_dir=self.work_dir,
                session=self._http_session,
            )
        return _download

    # --- terraform ---

    def init(self) -> None:
        self._deps(*DOWNLOAD_TARGETS)
        self._exec([("terraform", ["init"])])

    def validate(self) -> None:
        self._deps("init")
        self._exec([("terraform", ["validate"])])

    def init_backend(self) -> None:
        backend.init_backend(self.cfg, self.s3_client(), work_dir=self.work_dir)

    def plan(self) -> None:
        self._deps("init-backend")
        self._deps("validate")
        self._exec([("terraform", ["plan", "-out", PLAN_FILE])])

    def apply(self) -> None:
        self._deps("init-backend")
        self._deps("validate")
        try:
            plan_path = os.path.join(self.work_dir, PLAN_FILE)
            if not os.path.exists(plan_path):
                raise FilesystemError("terraform plan 파일을 찾을 수 없습니다", path=plan_path)
            self._exec([("terraform", ["apply", "--auto-approve", PLAN_FILE])])
        finally:
            # apply 성공/실패와 무관하게 state 보관을 시도하되, 원래 예외를 가리지 않는다.
            try:
                self.run("save-backend")
            except Exception:  # noqa: BLE001
                logger.exception("terraform state 보관 실패")

    def save_backend(self) -> None:
        backend.save_backend(self.cfg, self.s3_client, work_dir=self.work_dir)

    def test(self) -> None:
        self._deps("plan")

    def deploy(self) -> None:
        self._deps("plan", "apply")

    # --- ansible ---

    def get_roles(self) -> None:
        self._exec([
            (
                "ansible-galaxy",
                [
                    "install",
                    "-r",
                    f"{ANSIBLE_DIR}requirements.yml",
                    "--roles-path",
                    f"{ANSIBLE_DIR}roles",
                ],
            ),
        ])

    def upload_ansible(self) -> None:
        self._deps("get-roles")
        self._exec([
            (
                "aws",
                [
                    "s3",
                    "cp",
                    "--region",
                    self.cfg.region,
                    "--recursive",
                    ANSIBLE_DIR,
                    self.cfg.ansible_bucket_url,
                ],
            ),
        ])


def describe_config(cfg: ProvisionConfig) -> str:
    """
    현재 해석된 설정 요약. export 값은 길이만 출력한다.
    """
    lines: List[str] = []
    lines.append("# Provision config")
    lines.append(f"- project: {cfg.project_name}")
    lines.append(f"- env: {cfg.app_env}")
    lines.append(f"- region: {cfg.region}")
    lines.append(f"- backend bucket: {cfg.backend_bucket}")
    lines.append(f"- state file: {cfg.state_file}")
    lines.append("")

    lines.append("## Artifact versions")
    for a in artifacts.ARTIFACTS:
        lines.append(f"- {a.name}: {a.version(cfg)}")
    lines.append("")

    lines.append("## Exported variables")
    for e in cfg.exports():
        lines.append(f"- {e.name}: length={len(e.value)}")

    return "\n".join(lines)
