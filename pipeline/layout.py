"""pipeline.layout

Where things live on disk for one build.

Why this exists
---------------
``xcodebuild`` decides its output directory from three inputs (an explicit
``CONFIGURATION_BUILD_DIR``, a ``SYMROOT``, or its own default under the
project), and packaging has to look in exactly the same place. Keeping that
rule here means the command composer and the packaging stage cannot drift.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from xcode_build.domain import PLATFORM_DEVICE, PLATFORM_SIMULATOR

TEST_REPORTS_DIRNAME = "test-reports"
PAYLOAD_DIRNAME = "Payload"


def infer_platform(sdk: str) -> str:
    """``iphonesimulator`` iff *sdk* mentions it (any case), else ``iphoneos``."""
    if sdk and PLATFORM_SIMULATOR in sdk.lower():
        return PLATFORM_SIMULATOR
    return PLATFORM_DEVICE


def configuration_platform_dirname(configuration: str, platform: str) -> str:
    return f"{configuration}-{platform}"


def resolve_build_directory(
    working_dir: Path,
    configuration: str,
    platform: str,
    *,
    symroot: Optional[str] = None,
    configuration_build_dir: Optional[str] = None,
) -> Path:
    """Effective build output directory.

    Priority: ``configuration_build_dir`` > ``symroot/<cfg>-<platform>`` >
    ``<working_dir>/build/<cfg>-<platform>``. Empty values count as unset.
    """
    override = (configuration_build_dir or "").strip()
    if override:
        return Path(override)

    sub = configuration_platform_dirname(configuration, platform)
    root = (symroot or "").strip()
    if root:
        return Path(root) / sub
    return Path(working_dir) / "build" / sub


def junit_reports_dir(working_dir: Path) -> Path:
    return Path(working_dir) / TEST_REPORTS_DIRNAME


def resolve_ipa_output_dir(workspace: Path, ipa_output_directory: str, build_dir: Path) -> Path:
    """``<workspace>/<ipa_output_directory>`` when configured, else the build dir."""
    if ipa_output_directory and ipa_output_directory.strip():
        return Path(workspace) / ipa_output_directory.strip()
    return Path(build_dir)

