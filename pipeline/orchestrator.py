"""pipeline.orchestrator

The build pipeline, end to end.

Goal
----
Given one :class:`~xcode_build.domain.BuildRequest`, run the Apple tools in a
fixed order and either return a :class:`~xcode_build.domain.BuildReport` or
stop at the first fatal step with a :class:`~xcode_build.errors.PipelineError`
subclass.

Step order
----------
 1. required tools present (xcodebuild, agvtool)
 2. effective build directory
 3. ``xcodebuild -version``
 4. version discovery (agvtool)
 5. build metadata (``XCODE_BUILD_NUMBER``)
 6. bundle identifier override (PlistBuddy)
 7. version write-back (agvtool)
 8. clean build directory / test reports
 9. keychain unlock
10. signing and SDK diagnostics (advisory)
11. ``xcodebuild -list`` (10 s deadline)
12. target resolution
13. command composition
14. the build, judged by :class:`~tools.xcodebuild.BuildOutputParser`
15. packaging preconditions
16. packaging, one bundle at a time

Design principles
-----------------
- Collaborators come in through the constructor; nothing here reads global
  state or ``os.environ``.
- Best-effort steps (version reads, diagnostics, template expansion) log and
  carry on; everything else raises.
- The parser's verdict beats the raw process exit code.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from pipeline.command import build_command
from pipeline.config import ToolConfig
from pipeline.expansion import Expander, ExpansionError, expand, expand_env
from pipeline.keychains import resolve_keychain
from pipeline.layout import (
    infer_platform,
    junit_reports_dir,
    resolve_build_directory,
    resolve_ipa_output_dir,
)
from pipeline.packaging import Packager, PackagingSettings
from pipeline.targets import resolve_target_args
from pipeline.versioning import VersionResolver
from tools import plistbuddy, security
from tools.core_cmd import TIMED_OUT_EXIT_CODE, CommandRunner, format_command, resolve_executable
from tools.xcodebuild import (
    BuildOutputParser,
    TestReportWriter,
    list_project,
    run_build,
    show_sdks,
    xcodebuild_version,
)
from xcode_build.domain import (
    BuildMetadata,
    BuildOutcome,
    BuildReport,
    BuildRequest,
    Classification,
)
from xcode_build.errors import (
    BuildDirectoryListingError,
    BuildFailure,
    ConfigurationError,
    MissingBuildDirectoryError,
    NoApplicationsFoundError,
    ToolInvocationError,
)
from xcode_build.io import delete_recursive, ensure_dir, list_app_bundles

logger = logging.getLogger(__name__)

XCODE_BUILD_NUMBER = "XCODE_BUILD_NUMBER"


def classify(raw_exit_code: int, parser: BuildOutputParser) -> BuildOutcome:
    """Combine the raw exit code with the parser's verdict."""
    parser_code = parser.exit_code
    if parser.failed:
        classification = Classification.FAILED
    elif raw_exit_code == TIMED_OUT_EXIT_CODE:
        classification = Classification.TIMED_OUT
    elif parser_code != 0 or raw_exit_code != 0:
        classification = Classification.FAILED
    else:
        classification = Classification.SUCCEEDED
    return BuildOutcome(
        raw_exit_code=raw_exit_code,
        parser_exit_code=parser_code,
        classification=classification,
    )


class BuildOrchestrator:
    def __init__(
        self,
        config: ToolConfig,
        runner: CommandRunner,
        expander: Expander = expand,
    ) -> None:
        self.config = config
        self.runner = runner
        self.expander = expander
        self.versions = VersionResolver(
            runner,
            agvtool_path=config.agvtool,
            plistbuddy_path=config.plistbuddy,
            expander=expander,
        )
        self.packager = Packager(
            runner,
            self.versions,
            xcrun_path=config.xcrun,
            ditto_path=config.ditto,
        )

    # ------------------------------------------------------------------
    # Small helpers
    # ------------------------------------------------------------------

    def _check_tools(self) -> None:
        if resolve_executable(self.config.xcodebuild) is None:
            raise ConfigurationError(f"xcodebuild not found at {self.config.xcodebuild!r}")
        if resolve_executable(self.config.agvtool) is None:
            raise ConfigurationError(f"agvtool not found at {self.config.agvtool!r}")

    def _expand_optional(self, template: str, context: Mapping[str, str], what: str) -> Optional[str]:
        """Strict expansion; ``None`` when the template is empty or fails."""
        if not template:
            return None
        try:
            value = self.expander(template, context).strip()
        except ExpansionError as e:
            logger.warning("Could not expand %s %r: %s", what, template, e)
            return None
        return value or None

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def run(self, request: BuildRequest, env: Optional[Mapping[str, str]] = None) -> BuildReport:
        env = dict(env or {})
        self._check_tools()

        working_dir = request.working_dir
        logger.info("Working directory: %s", working_dir)

        platform = infer_platform(request.sdk)
        symroot = self._expand_optional(request.symroot, env, "SYMROOT")
        config_build_dir = self._expand_optional(request.configuration_build_dir, env, "CONFIGURATION_BUILD_DIR")
        build_dir = resolve_build_directory(
            working_dir,
            request.configuration,
            platform,
            symroot=symroot,
            configuration_build_dir=config_build_dir,
        )
        logger.info("Build directory: %s", build_dir)
        report = BuildReport(build_directory=build_dir)

        code = xcodebuild_version(self.runner, self.config.xcodebuild, env=env, cwd=working_dir)
        if code != 0:
            raise ToolInvocationError(
                f"xcodebuild is misconfigured: '-version' exited with {code}",
                command=f"{self.config.xcodebuild} -version",
                exit_code=code,
            )

        discovered = self.versions.discover(env=env, cwd=working_dir)
        report.metadata = BuildMetadata(version=discovered)
        report.version = discovered
        context: Dict[str, str] = {**env, XCODE_BUILD_NUMBER: report.metadata.build_number_token}

        if request.change_bundle_id:
            self._change_bundle_id(request, env, working_dir)

        report.version = self.versions.provide(request, discovered, context, env=env, cwd=working_dir)

        if request.clean_before_build:
            logger.info("Cleaning build directory %s", build_dir)
            delete_recursive(build_dir)
        if request.clean_test_reports:
            reports = junit_reports_dir(working_dir)
            logger.info("Cleaning test reports %s", reports)
            delete_recursive(reports)

        if request.unlock_keychain:
            self._unlock_keychain(request, env, working_dir)

        self._diagnostics(request, env, working_dir)

        listing = list_project(
            self.runner,
            self.config.xcodebuild,
            workspace_file=request.workspace_file,
            project_file=request.project_file,
            env=env,
            cwd=working_dir,
        )
        if listing.timed_out:
            logger.warning("xcodebuild -list timed out; continuing without the target list.")
            targets: List[str] = []
        elif listing.exit_code != 0:
            logger.warning(
                "xcodebuild -list exited with %d; stopping without building.", listing.exit_code
            )
            report.completed = False
            return report
        else:
            targets = list(listing.listing.targets)

        target_args = resolve_target_args(request, targets)
        cmd = build_command(
            self.config.xcodebuild,
            request,
            target_args,
            symroot=symroot,
            configuration_build_dir=Path(config_build_dir) if config_build_dir else None,
        )

        parser = BuildOutputParser(reports=TestReportWriter(junit_reports_dir(working_dir)))
        raw = run_build(self.runner, cmd, parser, env=env, cwd=working_dir)
        outcome = classify(raw, parser)
        report.outcome = outcome
        logger.info(
            "Build finished: %s (raw exit %d, parser exit %d)",
            outcome.classification.value,
            outcome.raw_exit_code,
            outcome.parser_exit_code,
        )

        if not request.allow_failing_build_results and (
            outcome.parser_exit_code != 0 or outcome.raw_exit_code != 0
        ):
            raise BuildFailure(
                f"Build {outcome.classification.value.lower()} "
                f"(parser exit {outcome.parser_exit_code}, process exit {outcome.raw_exit_code})",
                outcome=outcome,
            )

        if request.build_ipa:
            report.artifacts = self._package_all(request, platform, build_dir, env, working_dir)

        return report

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _change_bundle_id(self, request: BuildRequest, env: Mapping[str, str], cwd: Path) -> None:
        logger.info("Setting CFBundleIdentifier to %s in %s", request.bundle_id, request.bundle_id_info_plist_path)
        code = plistbuddy.set_key(
            self.runner,
            self.config.plistbuddy,
            request.bundle_id_info_plist_path,
            plistbuddy.CF_BUNDLE_IDENTIFIER,
            request.bundle_id,
            env=env,
            cwd=cwd,
        )
        if code != 0:
            raise ToolInvocationError(
                f"Failed to set CFBundleIdentifier to {request.bundle_id!r} (exit code {code})",
                command=format_command(
                    [
                        self.config.plistbuddy,
                        "-c",
                        f"Set :{plistbuddy.CF_BUNDLE_IDENTIFIER} {request.bundle_id}",
                        request.bundle_id_info_plist_path,
                    ]
                ),
                exit_code=code,
            )

    def _unlock_keychain(self, request: BuildRequest, env: Mapping[str, str], cwd: Path) -> None:
        keychain = resolve_keychain(request, self.config)
        if keychain is None:
            raise ConfigurationError(
                "Keychain unlock requested but no keychain is configured "
                f"(name {request.keychain_name!r}, path {request.keychain_path!r})."
            )
        keychain = keychain.expanded(lambda s: expand_env(s, env))
        logger.info("Unlocking keychain %s", keychain.path)
        security.CredentialUnlocker(self.runner, self.config.security).unlock(keychain, env=env, cwd=cwd)

    def _diagnostics(self, request: BuildRequest, env: Mapping[str, str], cwd: Path) -> None:
        logger.info("Available code signing identities:")
        security.show_signing_identities(self.runner, self.config.security, env=env, cwd=cwd)
        if request.code_signing_identity:
            logger.info("Certificate for %s:", request.code_signing_identity)
            security.show_certificate(
                self.runner, self.config.security, request.code_signing_identity, env=env, cwd=cwd
            )
        logger.info("Available SDKs:")
        show_sdks(self.runner, self.config.xcodebuild, env=env, cwd=cwd)

    def _package_all(
        self,
        request: BuildRequest,
        platform: str,
        build_dir: Path,
        env: Mapping[str, str],
        cwd: Path,
    ):
        if not build_dir.is_dir():
            raise MissingBuildDirectoryError(f"Build directory does not exist: {build_dir.absolute()}")

        output_dir = resolve_ipa_output_dir(request.workspace, request.ipa_output_directory, build_dir)
        ensure_dir(output_dir)
        logger.info("IPA output directory: %s", output_dir)

        try:
            apps = list_app_bundles(build_dir)
        except OSError as e:
            raise BuildDirectoryListingError(f"Cannot list build directory {build_dir.absolute()}: {e}")
        if not apps:
            raise NoApplicationsFoundError(f"No .app bundles found in {build_dir.absolute()}")

        sign_identity = request.code_signing_identity if request.sign_ipa_on_xcrun else ""
        settings = PackagingSettings(
            sdk=request.sdk,
            platform=platform,
            build_dir=build_dir,
            output_dir=output_dir,
            ipa_name=request.ipa_name,
            embedded_profile_file=request.embedded_profile_file,
            sign_identity=sign_identity,
            manifest_url=request.ipa_manifest_plist_url,
        )
        return [self.packager.package(app, settings, env=env, cwd=cwd) for app in apps]
