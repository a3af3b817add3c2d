from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

from tests.fixtures.sample_configs import config_with

_ROOT = Path(__file__).parents[1]


def _run(cfg: Path) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(_ROOT)
    env["RELAYBOT_CONF_FILE"] = str(cfg)
    env.pop("DEBUG", None)
    return subprocess.run(
        [sys.executable, str(_ROOT / "main.py"), "--health-check"],
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        timeout=20,
        check=False,
    )


def test_health_check_pass(tmp_path: Path) -> None:
    cfg = tmp_path / "relaybot.conf"
    cfg.write_text(json.dumps(config_with()), encoding="utf-8")
    proc = _run(cfg)
    if proc.returncode != 0:
        raise AssertionError(f"Health check expected exit code 0 got {proc.returncode} output={proc.stdout}")
    if "Health check passed - 1 network(s) configured" not in proc.stdout:
        raise AssertionError(f"Expected health message missing output={proc.stdout}")


def test_health_check_fail_missing_file(tmp_path: Path) -> None:
    proc = _run(tmp_path / "missing.conf")
    if proc.returncode != 1:
        raise AssertionError(f"Health check expected exit code 1 got {proc.returncode} output={proc.stdout}")
    if "Health check failed" not in proc.stdout:
        raise AssertionError(f"Expected failure message missing output={proc.stdout}")


def test_health_check_fail_invalid_config(tmp_path: Path) -> None:
    cfg = tmp_path / "relaybot.conf"
    cfg.write_text(json.dumps(config_with(nickname="")), encoding="utf-8")
    proc = _run(cfg)
    if proc.returncode != 1:
        raise AssertionError(f"Health check expected exit code 1 got {proc.returncode} output={proc.stdout}")
