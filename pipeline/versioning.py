"""pipeline.versioning

Version discovery, version write-back, and per-app version reads.

Why this exists
---------------
Two different sources describe "the version" of a build:

* before the build, ``agvtool`` reports (and can rewrite) the project's
  marketing version and technical build number;
* after the build, each ``.app`` bundle's ``Info.plist`` holds the values that
  actually shipped, and those name the packaged artifacts.

:class:`VersionResolver` owns both reads and the write-back, so the rest of the
pipeline only sees :class:`~xcode_build.domain.VersionInfo` and
:class:`~xcode_build.domain.BuiltApplication` values.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional

from pipeline.expansion import Expander, ExpansionError, expand
from tools import agvtool, plistbuddy
from tools.core_cmd import CommandRunner
from xcode_build.domain import BuildRequest, BuiltApplication, VersionInfo
from xcode_build.errors import ToolInvocationError

logger = logging.getLogger(__name__)


class VersionResolver:
    def __init__(
        self,
        runner: CommandRunner,
        *,
        agvtool_path: str,
        plistbuddy_path: str,
        expander: Expander = expand,
    ) -> None:
        self.runner = runner
        self.agvtool = agvtool_path
        self.plistbuddy = plistbuddy_path
        self.expander = expander

    # ------------------------------------------------------------------
    # agvtool
    # ------------------------------------------------------------------

    def discover(
        self,
        *,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> VersionInfo:
        """Read the project version; misses are logged, never raised."""
        marketing = agvtool.read_marketing_version(self.runner, self.agvtool, env=env, cwd=cwd)
        if marketing:
            logger.info("Found CFBundleShortVersionString: %s", marketing)
        else:
            logger.info("CFBundleShortVersionString not found")

        build_number = agvtool.read_build_number(self.runner, self.agvtool, env=env, cwd=cwd)
        if build_number:
            logger.info("Found CFBundleVersion: %s", build_number)
        else:
            logger.info("CFBundleVersion not found")

        return VersionInfo(build_number=build_number, marketing_version=marketing)

    def provide(
        self,
        request: BuildRequest,
        current: VersionInfo,
        context: Mapping[str, str],
        *,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> VersionInfo:
        """Write the templated versions back through agvtool.

        Only runs when ``provide_application_version`` is enabled. A template
        that fails to expand keeps the current value and is not written; a
        failed write raises :class:`ToolInvocationError`.
        """
        if not request.provide_application_version.enabled:
            return current

        version = current
        marketing = self._expand_template(request.marketing_version_template, context, "marketing version")
        if marketing:
            logger.info("Updating CFBundleShortVersionString to %s", marketing)
            code = agvtool.write_marketing_version(self.runner, self.agvtool, marketing, env=env, cwd=cwd)
            if code != 0:
                raise ToolInvocationError(
                    f"Failed to set CFBundleShortVersionString to {marketing} (exit code {code})",
                    command=f"{self.agvtool} new-marketing-version {marketing}",
                    exit_code=code,
                )
            version = replace(version, marketing_version=marketing)

        build_number = self._expand_template(request.build_number_template, context, "build number")
        if build_number:
            logger.info("Updating CFBundleVersion to %s", build_number)
            code = agvtool.write_build_number(self.runner, self.agvtool, build_number, env=env, cwd=cwd)
            if code != 0:
                raise ToolInvocationError(
                    f"Failed to set CFBundleVersion to {build_number} (exit code {code})",
                    command=f"{self.agvtool} new-version -all {build_number}",
                    exit_code=code,
                )
            version = replace(version, build_number=build_number)

        logger.info("CFBundleShortVersionString used: %s", version.marketing_version)
        logger.info("CFBundleVersion used: %s", version.build_number)
        return version

    def _expand_template(self, template: str, context: Mapping[str, str], what: str) -> str:
        if not template:
            return ""
        try:
            return self.expander(template, context).strip()
        except ExpansionError as e:
            logger.warning("Could not expand %s template %r; keeping the current value: %s", what, template, e)
            return ""

    # ------------------------------------------------------------------
    # Info.plist
    # ------------------------------------------------------------------

    def read_application(
        self,
        app: Path,
        *,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> BuiltApplication:
        """Read one bundle's version keys and modification time."""
        plist = Path(app) / "Info.plist"

        def _read(key: str) -> str:
            return plistbuddy.read_key(self.runner, self.plistbuddy, plist, key, env=env, cwd=cwd)

        build_number = _read(plistbuddy.CF_BUNDLE_VERSION)
        marketing = _read(plistbuddy.CF_BUNDLE_SHORT_VERSION_STRING)
        try:
            last_modified: Optional[datetime] = datetime.fromtimestamp(Path(app).stat().st_mtime)
        except OSError:
            last_modified = None

        return BuiltApplication(
            path=Path(app),
            build_number=build_number,
            marketing_version=marketing,
            last_modified=last_modified,
        )

    def read_identity(
        self,
        app: BuiltApplication,
        *,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> BuiltApplication:
        """Add the bundle identifier and display name (best effort)."""
        plist = app.path / "Info.plist"
        bundle_id = plistbuddy.read_key(
            self.runner, self.plistbuddy, plist, plistbuddy.CF_BUNDLE_IDENTIFIER, env=env, cwd=cwd
        )
        display_name = plistbuddy.read_key(
            self.runner, self.plistbuddy, plist, plistbuddy.CF_BUNDLE_DISPLAY_NAME, env=env, cwd=cwd
        )
        return replace(app, bundle_id=bundle_id, display_name=display_name)
