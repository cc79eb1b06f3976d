import sys

import click

from .artifacts import ARTIFACTS
from .config import load_env_files, load_config, ProvisionConfig
from .errors import ConfigurationError
from .logging_utils import setup_logging, get_logger
from .orchestrator import DEFAULT_TARGET, Orchestrator, describe_config


logger = get_logger(__name__)

# 설정 해석 실패 전용 종료 코드 (sysexits EX_CONFIG)
EXIT_BAD_ENV = 78
EXIT_FAILURE = 1


@click.group(chain=True, invoke_without_command=True)
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="terraform 작업 디렉토리 (기본: 현재 디렉토리)",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다.",
)
@click.option("-q", "--quiet", is_flag=True, help="경고 이상만 출력합니다.")
@click.option(
    "--no-env-files",
    is_flag=True,
    help=".env / .env.local 파일을 읽지 않고 프로세스 환경변수만 사용합니다.",
)
@click.pass_context
def main(ctx: click.Context, chdir: str, verbose: int, quiet: bool, no_env_files: bool) -> None:
    """terraform / ansible 기반 인프라 프로비저닝 빌드 타깃 모음

    여러 타깃을 한 번에 지정할 수 있다 (예: provision plan apply).
    같은 실행 안에서 공통 의존 타깃은 한 번만 실행된다.
    """
    setup_logging(verbose, quiet=quiet)
    ctx.ensure_object(dict)
    ctx.obj["chdir"] = chdir

    # 어떤 타깃보다도 먼저 설정을 해석한다. 실패하면 아무 타깃도 돌지 않는다.
    if not no_env_files:
        load_env_files(chdir)
    try:
        cfg = load_config()
    except ConfigurationError as e:
        click.echo(f"[ERROR] 환경변수 해석 실패: {e}", err=True)
        ctx.exit(EXIT_BAD_ENV)
    logger.debug("Config loaded: %s", cfg)
    ctx.obj["config"] = cfg

    if ctx.invoked_subcommand is None:
        _run_target(ctx, DEFAULT_TARGET)


def _run_target(ctx: click.Context, name: str) -> None:
    orch: Orchestrator | None = ctx.obj.get("orchestrator")
    if orch is None:
        cfg: ProvisionConfig = ctx.obj["config"]
        orch = Orchestrator(cfg, work_dir=ctx.obj["chdir"])
        ctx.obj["orchestrator"] = orch
    try:
        orch.run(name)
    except Exception as e:  # noqa: BLE001
        logger.exception("타깃 실행 중 오류 발생: %s", name)
        click.echo(f"[ERROR] {name} 실패: {e}", err=True)
        sys.exit(EXIT_FAILURE)


def _target_command(name: str, help_text: str) -> None:
    @main.command(name=name, help=help_text)
    @click.pass_context
    def _cmd(ctx: click.Context) -> None:
        _run_target(ctx, name)


_target_command("validate", "terraform validate (기본 타깃)")
_target_command("init", "릴리즈 아티팩트를 받고 terraform init")
_target_command("init-backend", "백엔드 버킷 존재 여부에 따라 backend.tf 작성")
_target_command("plan", "terraform plan -out plan.tfplan")
_target_command("apply", "terraform apply 후 로컬 state 를 백엔드 버킷에 보관")
_target_command("save-backend", "로컬 terraform state 를 백엔드 버킷에 업로드")
_target_command("test", "plan 까지 수행")
_target_command("deploy", "plan + apply")
_target_command("get-roles", "ansible-galaxy 로 필요한 role 설치")
_target_command("upload-ansible", "ansible 디렉토리를 S3 로 업로드")

for _artifact in ARTIFACTS:
    _target_command(
        f"download-{_artifact.name}",
        f"{_artifact.file_name} 를 release/ 에 다운로드",
    )


@main.command(name="show-config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """해석된 설정과 내보낸 환경변수(길이만) 요약을 출력"""
    click.echo(describe_config(ctx.obj["config"]))
