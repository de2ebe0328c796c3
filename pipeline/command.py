"""pipeline.command

Compose the ``xcodebuild`` build command line.

Argument order is fixed: target selection, ``-sdk``, workspace/project,
``-configuration``, ``clean``, ``archive`` or ``build`` (never both), the
build-setting overrides, then the user's extra arguments.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import List, Optional, Sequence

from tools.xcodebuild import workspace_or_project_args
from xcode_build.domain import BuildRequest
from xcode_build.errors import ConfigurationError


def split_xcodebuild_arguments(raw: str) -> List[str]:
    """Tokenise free-form extra arguments with shell quoting rules."""
    if not raw or not raw.strip():
        return []
    try:
        return shlex.split(raw)
    except ValueError as e:
        raise ConfigurationError(f"Cannot parse extra xcodebuild arguments {raw!r}: {e}")


def build_command(
    xcodebuild: str,
    request: BuildRequest,
    target_args: Sequence[str],
    *,
    symroot: Optional[str] = None,
    configuration_build_dir: Optional[Path] = None,
) -> List[str]:
    cmd: List[str] = [xcodebuild, *target_args]

    if request.sdk:
        cmd += ["-sdk", request.sdk]

    cmd += workspace_or_project_args(request.workspace_file, request.project_file)
    if request.configuration:
        cmd += ["-configuration", request.configuration]

    if request.clean_before_build:
        cmd.append("clean")

    cmd.append("archive" if request.generate_archive else "build")

    if symroot:
        cmd.append(f"SYMROOT={symroot}")
    if configuration_build_dir:
        cmd.append(f"CONFIGURATION_BUILD_DIR={configuration_build_dir}")
    if request.code_signing_identity:
        cmd.append(f"CODE_SIGN_IDENTITY={request.code_signing_identity}")

    cmd += split_xcodebuild_arguments(request.xcodebuild_arguments)
    return cmd
