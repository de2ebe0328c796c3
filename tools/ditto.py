"""tools/ditto.py

``ditto`` adapter used to zip debug symbols next to the packaged app.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

from tools.core_cmd import CommandRunner


def zip_keep_parent(
    runner: CommandRunner,
    ditto: str,
    source: Path,
    destination: Path,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> int:
    cmd = [ditto, "-c", "-k", "--keepParent", "-rsrc", str(source), str(destination)]
    return runner.run(cmd, env=env, cwd=cwd)
