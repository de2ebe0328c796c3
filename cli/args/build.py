from __future__ import annotations

import argparse
from typing import Any, Dict

# CLI dest -> BuildRequest field. Only flags the user actually passed are applied.
OVERRIDE_FIELDS: Dict[str, str] = {
    "scheme": "scheme",
    "target": "target",
    "target_regex": "interpret_target_as_regex",
    "sdk": "sdk",
    "configuration": "configuration",
    "project_path": "project_path",
    "project_file": "project_file",
    "workspace_file": "workspace_file",
    "symroot": "symroot",
    "configuration_build_dir": "configuration_build_dir",
    "code_signing_identity": "code_signing_identity",
    "xcodebuild_args": "xcodebuild_arguments",
    "clean": "clean_before_build",
    "clean_test_reports": "clean_test_reports",
    "archive": "generate_archive",
    "allow_failing": "allow_failing_build_results",
    "build_ipa": "build_ipa",
    "sign_ipa": "sign_ipa_on_xcrun",
    "embedded_profile": "embedded_profile_file",
    "ipa_name": "ipa_name",
    "ipa_output_dir": "ipa_output_directory",
    "manifest_url": "ipa_manifest_plist_url",
    "unlock_keychain": "unlock_keychain",
    "keychain_name": "keychain_name",
    "keychain_path": "keychain_path",
}


def add_build_args(parser: argparse.ArgumentParser) -> None:
    """Register flags that override job-file values for build/list-targets."""

    g = parser.add_argument_group("build overrides")
    g.add_argument("--scheme", help="Build this scheme (wins over --target).")
    g.add_argument("--target", help="Target name, or a regex with --target-regex.")
    g.add_argument(
        "--target-regex",
        action="store_true",
        default=None,
        help="Treat --target as a regex matched against the targets 'xcodebuild -list' reports.",
    )
    g.add_argument("--sdk", help="SDK name, e.g. iphoneos or iphonesimulator.")
    g.add_argument("--configuration", help="Build configuration (default: Release).")
    g.add_argument("--project-path", help="Project directory, relative to the workspace.")
    g.add_argument("--project-file", help="The .xcodeproj to build.")
    g.add_argument("--workspace-file", help="Xcode workspace name, without the .xcworkspace suffix.")
    g.add_argument("--symroot", help="SYMROOT build setting.")
    g.add_argument("--configuration-build-dir", help="CONFIGURATION_BUILD_DIR build setting.")
    g.add_argument("--code-signing-identity", help="CODE_SIGN_IDENTITY build setting.")
    g.add_argument("--xcodebuild-args", help="Extra xcodebuild arguments (shell quoting rules).")
    g.add_argument("--clean", action="store_true", default=None, help="Clean before building.")
    g.add_argument(
        "--clean-test-reports", action="store_true", default=None, help="Delete test-reports/ before building."
    )
    g.add_argument("--archive", action="store_true", default=None, help="Run 'archive' instead of 'build'.")
    g.add_argument(
        "--allow-failing",
        action="store_true",
        default=None,
        help="Keep going (and package) even when the build fails.",
    )
    g.add_argument("--build-ipa", action="store_true", default=None, help="Package every .app into an .ipa.")
    g.add_argument(
        "--sign-ipa", action="store_true", default=None, help="Pass --sign <identity> to PackageApplication."
    )
    g.add_argument("--embedded-profile", help="Provisioning profile to embed in the .ipa.")
    g.add_argument(
        "--ipa-name",
        help="Artifact name template; BASE_NAME, VERSION, SHORT_VERSION and BUILD_DATE are substituted.",
    )
    g.add_argument("--ipa-output-dir", help="Where .ipa files go, relative to the workspace.")
    g.add_argument("--manifest-url", help="Base URL for the over-the-air install manifest.")
    g.add_argument("--unlock-keychain", action="store_true", default=None, help="Unlock a keychain first.")
    g.add_argument("--keychain-name", help="Configured keychain to unlock.")
    g.add_argument("--keychain-path", help="Ad-hoc keychain path (password from KEYCHAIN_PASSWORD).")
    g.add_argument(
        "--metadata-out",
        help="(build mode) Write version info, XCODE_BUILD_NUMBER, outcome and artifacts as JSON here.",
    )


def request_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """BuildRequest fields set on the command line."""
    out: Dict[str, Any] = {}
    for dest, name in OVERRIDE_FIELDS.items():
        value = getattr(args, dest, None)
        if value is not None:
            out[name] = value
    return out
