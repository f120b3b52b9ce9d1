from __future__ import annotations

import os
import select
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest
import yaml

import atomex_playground.cli.main as main_mod


def _write_program(tmp_path, **app_overrides):
    app = {"network": "testnet", "home_dir": str(tmp_path / "home"), "log_level": "INFO"}
    app.update(app_overrides)
    raw = {
        "app": app,
        "users": ["mm0"],
        "networks": {
            "testnet": {
                "atomex_api_base": "https://api.test.example",
                "chains": {"tez": {"rpc_url": "https://rpc.example/ghostnet"}},
            },
            "mainnet": {
                "atomex_api_base": "https://api.example",
                "chains": {"tez": {"rpc_url": "https://rpc.example/mainnet"}},
            },
        },
    }
    path = tmp_path / "program.yaml"
    path.write_text(yaml.safe_dump(raw), encoding="utf-8")
    return path


@pytest.fixture
def launched(monkeypatch):
    state: dict = {}

    def _fake_logging(home_dir, *, log_level):
        state["logging"] = (home_dir, log_level)

    async def _fake_launch(self):
        state["network"] = self.network
        state["users"] = dict(self.users)

    monkeypatch.setattr(main_mod, "_initialize_playground_file_logging", _fake_logging)
    monkeypatch.setattr(main_mod.Playground, "launch", _fake_launch)
    return state


def test_main_loads_config_env_and_launches(tmp_path, monkeypatch, launched) -> None:
    program_path = _write_program(tmp_path, log_level="debug")
    env_path = tmp_path / ".env"
    env_path.write_text("USER_MM0_NAME=Market Maker\n", encoding="utf-8")
    monkeypatch.delenv("USER_MM0_NAME", raising=False)
    monkeypatch.setattr(
        sys, "argv", ["atomex-playground", "--program-config", str(program_path), "--env-file", str(env_path)]
    )

    with pytest.raises(SystemExit) as excinfo:
        main_mod.main()

    assert excinfo.value.code == 0
    assert launched["logging"] == (str(tmp_path / "home"), "DEBUG")
    assert launched["network"] == "testnet"
    assert launched["users"]["mm0"].name == "Market Maker"


def test_main_network_override(tmp_path, monkeypatch, launched) -> None:
    program_path = _write_program(tmp_path)
    monkeypatch.setattr(
        sys,
        "argv",
        ["atomex-playground", "--program-config", str(program_path), "--env-file", "", "--network", "mainnet"],
    )
    with pytest.raises(SystemExit) as excinfo:
        main_mod.main()
    assert excinfo.value.code == 0
    assert launched["network"] == "mainnet"


def test_main_rejects_invalid_program_config(tmp_path, monkeypatch, capsys, launched) -> None:
    program_path = _write_program(tmp_path, network="devnet")
    monkeypatch.setattr(sys, "argv", ["atomex-playground", "--program-config", str(program_path)])

    with pytest.raises(SystemExit) as excinfo:
        main_mod.main()

    assert excinfo.value.code == 2
    assert "app.network must be one of" in capsys.readouterr().err
    assert "logging" not in launched


def test_main_missing_program_config_exits(tmp_path, monkeypatch, capsys, launched) -> None:
    monkeypatch.setattr(sys, "argv", ["atomex-playground", "--program-config", str(tmp_path / "nope.yaml")])
    with pytest.raises(SystemExit) as excinfo:
        main_mod.main()
    assert excinfo.value.code == 2
    assert "Failed to load program config" in capsys.readouterr().err


_REPO_ROOT = Path(__file__).resolve().parents[1]


def _read_until(proc: subprocess.Popen, marker: bytes, *, timeout_s: float) -> bytes:
    fd = proc.stdout.fileno()
    buffer = b""
    deadline = time.monotonic() + timeout_s
    while marker not in buffer:
        remaining = deadline - time.monotonic()
        if remaining <= 0 or proc.poll() is not None:
            if proc.poll() is None:
                proc.kill()
                proc.wait()
            raise AssertionError(f"prompt not shown; stdout={buffer!r} stderr={proc.stderr.read()!r}")
        ready, _, _ = select.select([fd], [], [], remaining)
        if ready:
            chunk = os.read(fd, 4096)
            if not chunk:
                continue
            buffer += chunk
    return buffer


@pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX SIGINT delivery to a child process")
def test_ctrl_c_at_prompt_exits_with_zero(tmp_path) -> None:
    program_path = _write_program(tmp_path)
    env = {
        **os.environ,
        "PYTHONUNBUFFERED": "1",
        "PYTHONPATH": os.pathsep.join(p for p in (str(_REPO_ROOT), os.environ.get("PYTHONPATH", "")) if p),
    }
    env.pop("USER_MM0_SECRET_KEYS_TEZ", None)
    env.pop("USER_MM0_SECRET_KEYS_ETH", None)

    # stdin stays open: the prompt read must be abandoned, not ended by EOF.
    proc = subprocess.Popen(
        [
            sys.executable,
            "-m",
            "atomex_playground.cli.main",
            "--program-config",
            str(program_path),
            "--env-file",
            "",
        ],
        cwd=tmp_path,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env,
    )
    try:
        shown = _read_until(proc, b"cmd > ", timeout_s=60)
        proc.send_signal(signal.SIGINT)
        returncode = proc.wait(timeout=15)
        rest = proc.stdout.read()
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()
        proc.stdin.close()

    assert b"Launching..." in shown
    assert returncode == 0, proc.stderr.read().decode("utf-8", "replace")
    assert b"Exiting..." in rest
