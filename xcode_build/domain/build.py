"""xcode_build.domain.build

Data contracts for one pipeline invocation.

Why dataclasses instead of untyped dicts?
----------------------------------------
The job configuration has close to forty knobs. Passing them around as a loose
``dict`` makes it far too easy for one stage to read ``"scheme"`` while another
reads ``"xcodeSchema"``. :class:`BuildRequest` is the single immutable snapshot
every stage reads from; the result types (:class:`BuildOutcome`,
:class:`VersionInfo`, :class:`PackagedArtifact`, :class:`BuildReport`) are what
stages hand back.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

PLATFORM_DEVICE = "iphoneos"
PLATFORM_SIMULATOR = "iphonesimulator"


class ToggleState(str, enum.Enum):
    """Explicit replacement for nullable booleans in legacy job files."""

    UNSET = "unset"
    ENABLED = "enabled"
    DISABLED = "disabled"

    @classmethod
    def coerce(cls, value: Any) -> "ToggleState":
        if isinstance(value, ToggleState):
            return value
        if value is None:
            return cls.UNSET
        if isinstance(value, bool):
            return cls.ENABLED if value else cls.DISABLED
        s = str(value).strip().lower()
        if s in {"", "unset", "none", "null"}:
            return cls.UNSET
        if s in {"true", "yes", "1", "on", "enabled"}:
            return cls.ENABLED
        if s in {"false", "no", "0", "off", "disabled"}:
            return cls.DISABLED
        raise ValueError(f"Not a toggle value: {value!r}")

    @property
    def enabled(self) -> bool:
        return self is ToggleState.ENABLED


class Classification(str, enum.Enum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"


# String fields that are expanded against the job environment.
_EXPANDABLE = (
    "project_path",
    "project_file",
    "workspace_file",
    "scheme",
    "target",
    "sdk",
    "configuration",
    "symroot",
    "configuration_build_dir",
    "code_signing_identity",
    "xcodebuild_arguments",
    "embedded_profile_file",
    "build_number_template",
    "marketing_version_template",
    "bundle_id",
    "bundle_id_info_plist_path",
    "keychain_name",
    "keychain_path",
    "keychain_password",
    "ipa_name",
    "ipa_output_directory",
    "ipa_manifest_plist_url",
)


@dataclass(frozen=True)
class BuildRequest:
    """Immutable snapshot of the configuration for one invocation.

    Target selection: ``scheme`` wins over everything else; otherwise
    ``target`` is used literally, as a regex selector
    (``interpret_target_as_regex``), or, when empty and a project file is
    given, all targets are built.
    """

    workspace: Path = Path(".")
    project_path: str = ""
    project_file: str = ""
    workspace_file: str = ""

    scheme: str = ""
    target: str = ""
    interpret_target_as_regex: bool = False

    sdk: str = ""
    configuration: str = "Release"
    symroot: str = ""
    configuration_build_dir: str = ""
    code_signing_identity: str = ""
    xcodebuild_arguments: str = ""

    clean_before_build: bool = False
    clean_test_reports: bool = False
    generate_archive: bool = False
    allow_failing_build_results: bool = False

    provide_application_version: ToggleState = ToggleState.UNSET
    build_number_template: str = ""
    marketing_version_template: str = ""

    change_bundle_id: bool = False
    bundle_id: str = ""
    bundle_id_info_plist_path: str = ""

    unlock_keychain: bool = False
    keychain_name: str = ""
    keychain_path: str = ""
    keychain_password: str = field(default="", repr=False)

    build_ipa: bool = False
    sign_ipa_on_xcrun: bool = False
    embedded_profile_file: str = ""
    ipa_name: str = ""
    ipa_output_directory: str = ""
    ipa_manifest_plist_url: str = ""

    @property
    def working_dir(self) -> Path:
        if self.project_path:
            return Path(self.workspace) / self.project_path
        return Path(self.workspace)

    def expanded(self, expand: Callable[[str], str]) -> "BuildRequest":
        """Return a copy with every string knob passed through *expand*."""
        changes = {name: expand(getattr(self, name) or "") for name in _EXPANDABLE}
        return replace(self, **changes)

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]


@dataclass(frozen=True)
class BuildOutcome:
    """Result of the real build step.

    ``parser_exit_code`` is authoritative; ``raw_exit_code`` is what the
    process reported.
    """

    raw_exit_code: int
    parser_exit_code: int
    classification: Classification

    @property
    def succeeded(self) -> bool:
        return self.classification is Classification.SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "raw_exit_code": self.raw_exit_code,
            "parser_exit_code": self.parser_exit_code,
            "classification": self.classification.value,
        }


@dataclass(frozen=True)
class VersionInfo:
    """Technical build number (CFBundleVersion) and marketing version."""

    build_number: str = ""
    marketing_version: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.build_number and not self.marketing_version

    @property
    def build_description(self) -> str:
        return f"{self.marketing_version} ({self.build_number})"


@dataclass(frozen=True)
class BuildMetadata:
    """Version token attached to a run for downstream consumers."""

    version: VersionInfo

    @property
    def build_number_token(self) -> str:
        """Value of the ``XCODE_BUILD_NUMBER`` token."""
        return self.version.build_description

    def to_dict(self) -> Dict[str, Any]:
        return {
            "build_number": self.version.build_number,
            "marketing_version": self.version.marketing_version,
            "XCODE_BUILD_NUMBER": self.build_number_token,
        }


@dataclass(frozen=True)
class BuiltApplication:
    """One ``*.app`` bundle found under the build output directory."""

    path: Path
    build_number: str = ""
    marketing_version: str = ""
    bundle_id: str = ""
    display_name: str = ""
    last_modified: Optional[datetime] = None

    @property
    def base_name(self) -> str:
        return self.path.stem

    @property
    def dsym_path(self) -> Path:
        return self.path.with_name(self.path.name + ".dSYM")


@dataclass(frozen=True)
class PackagedArtifact:
    base_name: str
    ipa_path: Path
    dsym_zip_path: Optional[Path] = None
    manifest_path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_name": self.base_name,
            "ipa_path": str(self.ipa_path),
            "dsym_zip_path": str(self.dsym_zip_path) if self.dsym_zip_path else None,
            "manifest_path": str(self.manifest_path) if self.manifest_path else None,
        }


@dataclass
class BuildReport:
    """What one orchestrator run produced.

    ``completed`` is False when the pipeline stopped early without raising
    (the ``-list`` probe failed for a reason other than a timeout).
    """

    version: VersionInfo = field(default_factory=VersionInfo)
    metadata: Optional[BuildMetadata] = None
    outcome: Optional[BuildOutcome] = None
    artifacts: List[PackagedArtifact] = field(default_factory=list)
    build_directory: Optional[Path] = None
    completed: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completed": self.completed,
            "build_directory": str(self.build_directory) if self.build_directory else None,
            "metadata": self.metadata.to_dict() if self.metadata else None,
            "outcome": self.outcome.to_dict() if self.outcome else None,
            "artifacts": [a.to_dict() for a in self.artifacts],
        }
