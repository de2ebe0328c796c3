"""pipeline.job

Loading a job definition (one build's knobs) into a :class:`BuildRequest`.

Job files are YAML mappings using the snake_case field names of
:class:`~xcode_build.domain.BuildRequest`. Job definitions exported from the
older build-server configuration use camelCase names (``xcodeSchema``,
``cfBundleVersionValue``, ``keychainPwd`` ...); those are accepted and renamed
by :func:`migrate_legacy_job`.

The one field whose *meaning* changed is ``provide_application_version``: the
old configuration stored it as a nullable boolean and treated "never set" as
"on, if a version template is filled in". That rule lives in
:func:`migrate_provide_application_version`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from xcode_build.domain import BuildRequest, ToggleState
from xcode_build.errors import ConfigurationError

LEGACY_FIELD_NAMES: Dict[str, str] = {
    "cleanBeforeBuild": "clean_before_build",
    "cleanTestReports": "clean_test_reports",
    "symRoot": "symroot",
    "configurationBuildDir": "configuration_build_dir",
    "xcodeProjectPath": "project_path",
    "xcodeProjectFile": "project_file",
    "xcodebuildArguments": "xcodebuild_arguments",
    "xcodeSchema": "scheme",
    "xcodeWorkspaceFile": "workspace_file",
    "embeddedProfileFile": "embedded_profile_file",
    "cfBundleVersionValue": "build_number_template",
    "cfBundleShortVersionStringValue": "marketing_version_template",
    "buildIpa": "build_ipa",
    "generateArchive": "generate_archive",
    "unlockKeychain": "unlock_keychain",
    "keychainName": "keychain_name",
    "keychainPath": "keychain_path",
    "keychainPwd": "keychain_password",
    "codeSigningIdentity": "code_signing_identity",
    "allowFailingBuildResults": "allow_failing_build_results",
    "ipaName": "ipa_name",
    "ipaOutputDirectory": "ipa_output_directory",
    "provideApplicationVersion": "provide_application_version",
    "changeBundleID": "change_bundle_id",
    "bundleID": "bundle_id",
    "bundleIDInfoPlistPath": "bundle_id_info_plist_path",
    "interpretTargetAsRegEx": "interpret_target_as_regex",
    "ipaManifestPlistUrl": "ipa_manifest_plist_url",
    "signIpaOnXcrun": "sign_ipa_on_xcrun",
}

_BOOL_FIELDS = {
    "interpret_target_as_regex",
    "clean_before_build",
    "clean_test_reports",
    "generate_archive",
    "allow_failing_build_results",
    "change_bundle_id",
    "unlock_keychain",
    "build_ipa",
    "sign_ipa_on_xcrun",
}


def migrate_provide_application_version(
    state: ToggleState,
    build_number_template: str,
    marketing_version_template: str,
) -> ToggleState:
    """Resolve an UNSET toggle the way legacy jobs behaved.

    An explicit ENABLED/DISABLED is kept. UNSET becomes ENABLED iff at least
    one version template is non-empty, otherwise DISABLED.
    """
    if state is not ToggleState.UNSET:
        return state
    if (build_number_template or "").strip() or (marketing_version_template or "").strip():
        return ToggleState.ENABLED
    return ToggleState.DISABLED


def migrate_legacy_job(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Rename legacy camelCase keys; a key given both ways is an error."""
    out: Dict[str, Any] = {}
    for key, value in raw.items():
        new = LEGACY_FIELD_NAMES.get(key, key)
        if new in out:
            raise ConfigurationError(f"Job field {new!r} given more than once (as {key!r}).")
        out[new] = value
    return out


def _as_bool(name: str, value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in {"true", "yes", "1", "on"}:
        return True
    if s in {"false", "no", "0", "off", ""}:
        return False
    raise ConfigurationError(f"Job field {name!r} must be a boolean, got {value!r}.")


def build_request_from_mapping(
    raw: Mapping[str, Any],
    *,
    workspace: Optional[Path] = None,
) -> BuildRequest:
    """Turn a job mapping (snake_case or legacy camelCase) into a request."""
    data = migrate_legacy_job(raw)
    known = set(BuildRequest.field_names())
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown job field(s): {unknown}")

    kwargs: Dict[str, Any] = {}
    for name, value in data.items():
        if name == "workspace":
            kwargs[name] = Path(str(value))
        elif name in _BOOL_FIELDS:
            kwargs[name] = _as_bool(name, value)
        elif name == "provide_application_version":
            try:
                kwargs[name] = ToggleState.coerce(value)
            except ValueError as e:
                raise ConfigurationError(f"Job field {name!r}: {e}")
        else:
            kwargs[name] = "" if value is None else str(value)

    if workspace is not None:
        kwargs["workspace"] = Path(workspace)

    kwargs["provide_application_version"] = migrate_provide_application_version(
        kwargs.get("provide_application_version", ToggleState.UNSET),
        kwargs.get("build_number_template", ""),
        kwargs.get("marketing_version_template", ""),
    )
    return BuildRequest(**kwargs)


def load_job_mapping(path: Path) -> Dict[str, Any]:
    """Read a job YAML file into a plain mapping (field names not yet migrated)."""
    import yaml

    p = Path(path).expanduser().resolve()
    if not p.exists():
        raise ConfigurationError(f"Job definition not found: {p}")
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {p}: {e}")
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Job YAML must be a mapping/object at top level: {p}")
    return dict(raw)


def load_job_yaml(path: Path, *, workspace: Optional[Path] = None) -> BuildRequest:
    """Load a job definition from YAML."""
    return build_request_from_mapping(load_job_mapping(path), workspace=workspace)
