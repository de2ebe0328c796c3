"""tools/plistbuddy.py

``PlistBuddy`` adapter for the handful of Info.plist keys the pipeline
touches.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Union

from tools.core_cmd import CommandRunner

CF_BUNDLE_VERSION = "CFBundleVersion"
CF_BUNDLE_SHORT_VERSION_STRING = "CFBundleShortVersionString"
CF_BUNDLE_IDENTIFIER = "CFBundleIdentifier"
CF_BUNDLE_DISPLAY_NAME = "CFBundleDisplayName"


def read_key(
    runner: CommandRunner,
    plistbuddy: str,
    plist: Union[str, Path],
    key: str,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> str:
    """Return the value of *key*, or ``""`` if it is missing or unreadable."""
    res = runner.capture([plistbuddy, "-c", f"Print :{key}", str(plist)], env=env, cwd=cwd)
    return res.stdout.strip() if res.exit_code == 0 else ""


def set_key(
    runner: CommandRunner,
    plistbuddy: str,
    plist: Union[str, Path],
    key: str,
    value: str,
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> int:
    return runner.run([plistbuddy, "-c", f"Set :{key} {value}", str(plist)], env=env, cwd=cwd)
