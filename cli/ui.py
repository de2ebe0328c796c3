from __future__ import annotations

import sys
from typing import Sequence

from tools.xcodebuild import XcodeListing
from xcode_build.domain import BuildReport


def print_error(reason: str) -> None:
    print(f"❌ {reason}", file=sys.stderr)


def print_report(report: BuildReport) -> None:
    print("\n📦 Build summary")
    if report.build_directory is not None:
        print(f"  Build dir : {report.build_directory}")
    if report.metadata is not None:
        print(f"  Version   : {report.metadata.build_number_token}")
        if report.version != report.metadata.version:
            print(f"  Provided  : {report.version.build_description}")

    if not report.completed:
        print("\n⚠️ Stopped before building ('xcodebuild -list' failed).")
        return

    if report.outcome is not None:
        o = report.outcome
        print(f"  Outcome   : {o.classification.value} (parser exit {o.parser_exit_code}, process exit {o.raw_exit_code})")

    for a in report.artifacts:
        print(f"  📱 {a.ipa_path}")
        if a.dsym_zip_path:
            print(f"     dSYM     : {a.dsym_zip_path}")
        if a.manifest_path:
            print(f"     manifest : {a.manifest_path}")

    if report.outcome is not None and report.outcome.succeeded:
        print("\n✅ Build completed.")
    else:
        print("\n⚠️ Build finished but did not succeed (failing results allowed).")


def _print_section(title: str, items: Sequence[str]) -> None:
    print(f"\n{title}:")
    if not items:
        print("  (none)")
    for item in items:
        print(f"  - {item}")


def print_listing(listing: XcodeListing) -> None:
    _print_section("Targets", listing.targets)
    _print_section("Build configurations", listing.configurations)
    _print_section("Schemes", listing.schemes)
