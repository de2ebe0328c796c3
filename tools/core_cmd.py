"""tools/core_cmd.py

Command-execution helpers shared across the Apple tool adapters.

This module deliberately avoids tool-specific knowledge. It provides:

* :class:`CommandRunner` - run subprocesses (no shell=True), streaming stdout
  line-by-line to a sink, with an optional bounded-time variant.
* :func:`format_command` - render a command line for logs with secret
  arguments masked.
* :func:`resolve_executable` - check that a configured tool is runnable.

Exit codes are returned, never raised on: deciding whether a non-zero exit is
fatal is the caller's job.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

# Exit status of a process terminated by SIGTERM (128 + 15).
TIMED_OUT_EXIT_CODE = 143
# Shell convention for "command not found".
NOT_FOUND_EXIT_CODE = 127

MASK = "********"

LineSink = Callable[[str], None]


@dataclass(frozen=True)
class CmdResult:
    exit_code: int
    elapsed_seconds: float
    command_str: str
    stdout: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def format_command(cmd: Sequence[str], masks: Iterable[int] = ()) -> str:
    """Join *cmd* for display, replacing the arguments at *masks* indices."""
    hidden = set(masks)
    return " ".join(MASK if i in hidden else str(arg) for i, arg in enumerate(cmd))


def resolve_executable(tool: str) -> Optional[str]:
    """Return the path of *tool* if it exists (as a path or on PATH)."""
    if not tool:
        return None
    p = Path(tool)
    if p.exists():
        return str(p)
    return shutil.which(tool)


def _merged_env(env: Optional[Mapping[str, str]]) -> Optional[dict]:
    # If env is provided, merge it onto the current process environment.
    if env is None:
        return None
    env2 = os.environ.copy()
    env2.update({str(k): str(v) for k, v in env.items()})
    return env2


def _log_line(line: str) -> None:
    logger.info("%s", line)


def _exit_status(returncode: int) -> int:
    # Popen reports death by signal N as -N; shells report 128 + N.
    if returncode < 0:
        return 128 - returncode
    return returncode


def _decode(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return str(data)


class CommandRunner:
    """Subprocess-backed process launcher.

    ``stdout_sink`` receives each line of output without its trailing newline;
    stderr is merged into stdout. When no sink is given, lines go to this
    module's logger.
    """

    def run(
        self,
        cmd: Sequence[str],
        *,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
        stdout_sink: Optional[LineSink] = None,
        masks: Iterable[int] = (),
        merge_stderr: bool = True,
    ) -> int:
        """Run *cmd* to completion, streaming its output. Returns the exit code.

        With ``merge_stderr=False`` stderr is left attached to this process so
        diagnostics never end up in captured values.
        """
        args = [str(c) for c in cmd]
        sink = stdout_sink or _log_line
        logger.info("$ %s", format_command(args, masks))

        try:
            proc = subprocess.Popen(
                args,
                cwd=str(cwd) if cwd else None,
                env=_merged_env(env),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if merge_stderr else None,
                text=True,
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            logger.error("Cannot execute %s: %s", args[0] if args else "<empty>", e)
            return NOT_FOUND_EXIT_CODE

        assert proc.stdout is not None
        with proc.stdout:
            for line in proc.stdout:
                sink(line.rstrip("\r\n"))
        return _exit_status(proc.wait())

    def run_with_timeout(
        self,
        cmd: Sequence[str],
        *,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
        stdout_sink: Optional[LineSink] = None,
        timeout_seconds: float,
        masks: Iterable[int] = (),
    ) -> int:
        """Run *cmd* for at most *timeout_seconds*.

        Returns :data:`TIMED_OUT_EXIT_CODE` when the deadline passes; whatever
        output was produced before the deadline is still delivered to the sink.
        """
        args = [str(c) for c in cmd]
        sink = stdout_sink or _log_line
        logger.info("$ %s (timeout %ss)", format_command(args, masks), timeout_seconds)

        try:
            proc = subprocess.run(
                args,
                cwd=str(cwd) if cwd else None,
                env=_merged_env(env),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=timeout_seconds,
            )
        except subprocess.TimeoutExpired as e:
            for line in _decode(e.stdout).splitlines():
                sink(line)
            logger.warning("Timed out after %ss: %s", timeout_seconds, args[0])
            return TIMED_OUT_EXIT_CODE
        except OSError as e:
            logger.error("Cannot execute %s: %s", args[0] if args else "<empty>", e)
            return NOT_FOUND_EXIT_CODE

        for line in _decode(proc.stdout).splitlines():
            sink(line)
        return _exit_status(proc.returncode)

    def capture(
        self,
        cmd: Sequence[str],
        *,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
        masks: Iterable[int] = (),
    ) -> CmdResult:
        """Run *cmd* and collect its output instead of streaming it."""
        t0 = time.time()
        lines: List[str] = []
        code = self.run(
            cmd, env=env, cwd=cwd, stdout_sink=lines.append, masks=masks, merge_stderr=False
        )
        return CmdResult(
            exit_code=code,
            elapsed_seconds=time.time() - t0,
            command_str=format_command([str(c) for c in cmd], masks),
            stdout="\n".join(lines),
        )
