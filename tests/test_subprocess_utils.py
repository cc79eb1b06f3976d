from __future__ import annotations

import sys

import pytest

from provision_kit.errors import ExternalCommandError
from provision_kit.subprocess_utils import run_command, run_commands


def _py(code: str) -> tuple[str, list[str]]:
    return sys.executable, ["-c", code]


def test_run_command_inherits_stdout(capfd: pytest.CaptureFixture[str]) -> None:
    assert run_command([sys.executable, "-c", "print('hello')"]) is None
    assert "hello" in capfd.readouterr().out


def test_run_commands_runs_in_order(tmp_path) -> None:
    log = tmp_path / "log.txt"
    commands = [
        _py(f"open({str(log)!r}, 'a').write('first\\n')"),
        _py(f"open({str(log)!r}, 'a').write('second\\n')"),
    ]

    run_commands(commands)

    assert log.read_text() == "first\nsecond\n"


def test_run_commands_stops_at_first_failure(tmp_path) -> None:
    marker = tmp_path / "ran.txt"
    commands = [
        _py("import sys; sys.exit(3)"),
        _py(f"open({str(marker)!r}, 'w').write('x')"),
    ]

    with pytest.raises(ExternalCommandError) as excinfo:
        run_commands(commands)

    assert excinfo.value.returncode == 3
    assert excinfo.value.cmd[0] == sys.executable
    assert "sys.exit(3)" in str(excinfo.value)
    assert not marker.exists()


def test_missing_executable_raises_external_command_error() -> None:
    with pytest.raises(ExternalCommandError) as excinfo:
        run_command(["definitely-not-a-real-binary-xyz", "init"])

    assert excinfo.value.returncode is None
    assert "definitely-not-a-real-binary-xyz" in str(excinfo.value)


def test_run_command_uses_cwd(tmp_path) -> None:
    run_command([sys.executable, "-c", "open('here.txt', 'w').write('ok')"], cwd=str(tmp_path))

    assert (tmp_path / "here.txt").read_text() == "ok"
