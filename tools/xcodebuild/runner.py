"""tools/xcodebuild/runner.py

Tool-specific execution plumbing for ``xcodebuild``.
Keeps xcodebuild CLI quirks close to the tool.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from tools.core_cmd import TIMED_OUT_EXIT_CODE, CommandRunner
from tools.xcodebuild.list_parser import XcodeListing, parse_list_output
from tools.xcodebuild.output_parser import BuildOutputParser

LIST_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class ListResult:
    exit_code: int
    listing: XcodeListing
    output: str

    @property
    def timed_out(self) -> bool:
        return self.exit_code == TIMED_OUT_EXIT_CODE


def workspace_or_project_args(workspace_file: str, project_file: str) -> List[str]:
    """``-workspace <name>.xcworkspace`` wins over ``-project <file>``."""
    if workspace_file:
        return ["-workspace", f"{workspace_file}.xcworkspace"]
    if project_file:
        return ["-project", project_file]
    return []


def xcodebuild_version(
    runner: CommandRunner,
    xcodebuild: str,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> int:
    return runner.run([xcodebuild, "-version"], env=env, cwd=cwd)


def show_sdks(
    runner: CommandRunner,
    xcodebuild: str,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> int:
    return runner.run([xcodebuild, "-showsdks"], env=env, cwd=cwd)


def list_project(
    runner: CommandRunner,
    xcodebuild: str,
    *,
    workspace_file: str = "",
    project_file: str = "",
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
    timeout_seconds: float = LIST_TIMEOUT_SECONDS,
) -> ListResult:
    """Run ``xcodebuild -list`` under a deadline and parse what it printed."""
    cmd = [xcodebuild, "-list", *workspace_or_project_args(workspace_file, project_file)]
    lines: List[str] = []
    code = runner.run_with_timeout(
        cmd, env=env, cwd=cwd, stdout_sink=lines.append, timeout_seconds=timeout_seconds
    )
    output = "\n".join(lines)
    return ListResult(exit_code=code, listing=parse_list_output(output), output=output)


def run_build(
    runner: CommandRunner,
    cmd: Sequence[str],
    parser: BuildOutputParser,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> int:
    """Run the real build, streaming every line through *parser*.

    Returns the raw process exit code; the parser holds the authoritative one.
    """
    try:
        return runner.run(cmd, env=env, cwd=cwd, stdout_sink=parser)
    finally:
        parser.close()
