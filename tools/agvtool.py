"""tools/agvtool.py

``agvtool`` adapter: read and write the project's marketing version
(CFBundleShortVersionString) and technical version (CFBundleVersion).

Reads are best-effort and return ``""`` when the tool fails or prints nothing;
writes return the exit code so the caller can decide it is fatal.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

from tools.core_cmd import CommandRunner


def read_marketing_version(
    runner: CommandRunner,
    agvtool: str,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> str:
    res = runner.capture([agvtool, "mvers", "-terse1"], env=env, cwd=cwd)
    return res.stdout.strip() if res.exit_code == 0 else ""


def read_build_number(
    runner: CommandRunner,
    agvtool: str,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> str:
    res = runner.capture([agvtool, "vers", "-terse"], env=env, cwd=cwd)
    return res.stdout.strip() if res.exit_code == 0 else ""


def write_marketing_version(
    runner: CommandRunner,
    agvtool: str,
    version: str,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> int:
    return runner.run([agvtool, "new-marketing-version", version], env=env, cwd=cwd)


def write_build_number(
    runner: CommandRunner,
    agvtool: str,
    version: str,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> int:
    return runner.run([agvtool, "new-version", "-all", version], env=env, cwd=cwd)
