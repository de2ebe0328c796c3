"""xcode_build.domain

Domain objects that form the *contract* between pipeline stages.

Key idea
--------
The Apple tools speak in command lines and stdout. Everything the pipeline
learns from them is turned into one of these types before it crosses a stage
boundary.
"""

from __future__ import annotations

from .build import (
    PLATFORM_DEVICE,
    PLATFORM_SIMULATOR,
    BuildMetadata,
    BuildOutcome,
    BuildReport,
    BuildRequest,
    BuiltApplication,
    Classification,
    PackagedArtifact,
    ToggleState,
    VersionInfo,
)
from .keychain import Keychain

__all__ = [
    "PLATFORM_DEVICE",
    "PLATFORM_SIMULATOR",
    "BuildMetadata",
    "BuildOutcome",
    "BuildReport",
    "BuildRequest",
    "BuiltApplication",
    "Classification",
    "Keychain",
    "PackagedArtifact",
    "ToggleState",
    "VersionInfo",
]
