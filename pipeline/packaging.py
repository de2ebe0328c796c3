"""pipeline.packaging

Turn each built ``.app`` into a distributable ``.ipa`` (plus zipped dSYM and
an over-the-air install manifest).

Per bundle:

1. read CFBundleVersion / CFBundleShortVersionString; at least one is required
2. compute the artifact base name (default rule or the custom template)
3. recreate the ``Payload`` scratch directory
4. ``xcrun PackageApplication``
5. zip ``<app>.dSYM`` with ``ditto`` when it exists
6. write ``<base>.plist`` when a manifest URL is configured

``Payload`` is removed again after every bundle, whether packaging worked or
not.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
from xml.sax.saxutils import escape

from pipeline.layout import PAYLOAD_DIRNAME
from pipeline.versioning import VersionResolver
from tools import ditto, xcrun
from tools.core_cmd import CommandRunner, format_command
from xcode_build.domain import PLATFORM_SIMULATOR, BuiltApplication, PackagedArtifact
from xcode_build.errors import MissingVersionError, ToolInvocationError
from xcode_build.io import delete_recursive, ensure_dir, write_text_atomic

logger = logging.getLogger(__name__)

BUILD_DATE_FORMAT = "%Y.%m.%d"

MANIFEST_PLIST_TEMPLATE = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">'
    '<plist version="1.0"><dict><key>items</key><array><dict><key>assets</key><array><dict>'
    "<key>kind</key><string>software-package</string>"
    "<key>url</key><string>${IPA_URL_BASE}/${IPA_NAME}</string>"
    "</dict></array><key>metadata</key><dict>"
    "<key>bundle-identifier</key><string>${BUNDLE_ID}</string>"
    "<key>bundle-version</key><string>${BUNDLE_VERSION}</string>"
    "<key>kind</key><string>software</string>"
    "<key>title</key><string>${APP_NAME}</string>"
    "</dict></dict></array></dict></plist>"
)

NAMING_VARIABLES = ("BASE_NAME", "VERSION", "SHORT_VERSION", "BUILD_DATE")

# ${NAME}, {NAME} or $NAME, only for the four naming variables.
_NAMING_RE = re.compile(
    r"\$\{(?P<braced>%s)\}|\{(?P<bare>%s)\}|\$(?P<plain>%s)(?![A-Za-z0-9_])"
    % ((("|".join(NAMING_VARIABLES)),) * 3)
)


def bundle_base_name(app: BuiltApplication) -> str:
    return app.base_name.replace(" ", "_")


def default_artifact_name(app: BuiltApplication) -> str:
    """``<bundle>[-<marketing>][-<build>]`` with spaces turned into underscores."""
    name = bundle_base_name(app)
    if app.marketing_version:
        name += f"-{app.marketing_version}"
    if app.build_number:
        name += f"-{app.build_number}"
    return name


def naming_context(app: BuiltApplication) -> dict:
    build_date = app.last_modified.strftime(BUILD_DATE_FORMAT) if app.last_modified else ""
    return {
        "BASE_NAME": bundle_base_name(app),
        "VERSION": app.build_number,
        "SHORT_VERSION": app.marketing_version,
        "BUILD_DATE": build_date,
    }


def expand_naming_template(template: str, context: Mapping[str, str]) -> str:
    """Substitute the naming variables; any other text is kept as written."""

    def _sub(m: "re.Match[str]") -> str:
        name = m.group("braced") or m.group("bare") or m.group("plain")
        return str(context.get(name, ""))

    return _NAMING_RE.sub(_sub, template)


def artifact_base_name(app: BuiltApplication, ipa_name: str = "") -> str:
    if ipa_name and ipa_name.strip():
        return expand_naming_template(ipa_name.strip(), naming_context(app))
    return default_artifact_name(app)


def render_manifest(
    *,
    url_base: str,
    ipa_name: str,
    bundle_id: str,
    bundle_version: str,
    app_name: str,
) -> str:
    return (
        MANIFEST_PLIST_TEMPLATE.replace("${IPA_URL_BASE}", escape(url_base))
        .replace("${IPA_NAME}", escape(ipa_name))
        .replace("${BUNDLE_ID}", escape(bundle_id))
        .replace("${BUNDLE_VERSION}", escape(bundle_version))
        .replace("${APP_NAME}", escape(app_name))
    )


@dataclass(frozen=True)
class PackagingSettings:
    """The request knobs packaging needs, already resolved."""

    sdk: str
    platform: str
    build_dir: Path
    output_dir: Path
    ipa_name: str = ""
    embedded_profile_file: str = ""
    sign_identity: str = ""
    manifest_url: str = ""

    @property
    def packaging_sdk(self) -> str:
        return self.sdk or self.platform


class Packager:
    def __init__(
        self,
        runner: CommandRunner,
        versions: VersionResolver,
        *,
        xcrun_path: str,
        ditto_path: str,
    ) -> None:
        self.runner = runner
        self.versions = versions
        self.xcrun = xcrun_path
        self.ditto = ditto_path

    def package(
        self,
        app_path: Path,
        settings: PackagingSettings,
        *,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ) -> PackagedArtifact:
        app = self.versions.read_application(app_path, env=env, cwd=cwd)
        if not app.build_number and not app.marketing_version:
            raise MissingVersionError(
                f"{app.path.name}: you must provide either a marketing or a technical version. Found neither."
            )

        base_name = artifact_base_name(app, settings.ipa_name)
        ipa_file_name = f"{base_name}.ipa"
        ipa_path = settings.output_dir / ipa_file_name

        payload = settings.output_dir / PAYLOAD_DIRNAME
        delete_recursive(payload)
        ensure_dir(payload)
        try:
            logger.info("Packaging %s => %s", app.path.name, ipa_path)
            if settings.platform == PLATFORM_SIMULATOR:
                logger.warning(
                    "Packaging an IPA for the simulator SDK %r; it will not install on a device.",
                    settings.sdk or settings.platform,
                )

            cmd = xcrun.package_application_command(
                self.xcrun,
                settings.packaging_sdk,
                app.path,
                ipa_path,
                embedded_profile=settings.embedded_profile_file,
                sign_identity=settings.sign_identity,
            )
            code = self.runner.run(cmd, env=env, cwd=cwd)
            if code != 0:
                raise ToolInvocationError(
                    f"Failed to build {ipa_path} (exit code {code})",
                    command=format_command(cmd),
                    exit_code=code,
                )

            dsym_zip: Optional[Path] = None
            if app.dsym_path.exists():
                dsym_zip = settings.output_dir / f"{base_name}-dSYM.zip"
                code = ditto.zip_keep_parent(
                    self.runner, self.ditto, app.dsym_path, dsym_zip, env=env, cwd=settings.build_dir
                )
                if code != 0:
                    raise ToolInvocationError(
                        f"Failed to zip {app.dsym_path.name} for {base_name} (exit code {code})",
                        exit_code=code,
                    )

            manifest_path: Optional[Path] = None
            if settings.manifest_url:
                manifest_path = settings.output_dir / f"{base_name}.plist"
                logger.info("Creating manifest plist => %s", manifest_path)
                app = self.versions.read_identity(app, env=env, cwd=cwd)
                write_text_atomic(
                    manifest_path,
                    render_manifest(
                        url_base=settings.manifest_url,
                        ipa_name=ipa_file_name,
                        bundle_id=app.bundle_id,
                        bundle_version=app.marketing_version,
                        app_name=app.display_name,
                    ),
                )
        finally:
            delete_recursive(payload)

        return PackagedArtifact(
            base_name=base_name,
            ipa_path=ipa_path,
            dsym_zip_path=dsym_zip,
            manifest_path=manifest_path,
        )
