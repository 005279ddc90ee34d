"""
utils_run.py

subprocess wrapper used to run hook scripts: optional timeout, stdout and stderr combined.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path


def run_cmd(cmd: list[str], cwd: Path | None = None, timeout_s: int | None = None) -> tuple[int, str]:
    try:
        p = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout_s,
        )
    except subprocess.TimeoutExpired:
        return 124, f"timeout running: {' '.join(cmd)}"
    # hooks may print anything, undecodable bytes must not turn into an exception
    return p.returncode, p.stdout.decode("utf-8", errors="replace")


def script_cmd(script: Path) -> list[str]:
    # scripts without the exec bit still run, through sh
    if os.access(script, os.X_OK):
        return [str(script)]
    return ["sh", str(script)]


def run_script(script: Path, cwd: Path | None = None, timeout_s: int | None = None) -> tuple[int, str]:
    return run_cmd(script_cmd(script), cwd=cwd, timeout_s=timeout_s)
