#!/usr/bin/env python3
"""
CLI for the Xcode build pipeline.

Modes:
  1) build              - resolve targets, unlock the keychain, build, package
  2) restore-keychains  - put the configured keychain search list back
  3) list-targets       - show what 'xcodebuild -list' reports

Usage:
  python xcode_cli.py --job job.yaml
  python xcode_cli.py --job job.yaml --scheme MyApp --build-ipa --metadata-out build.json
  python xcode_cli.py --mode list-targets --project-file MyApp.xcodeproj
  python xcode_cli.py --mode restore-keychains --config xcode-pipeline.yaml
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from cli.args.base import add_base_args
from cli.args.build import add_build_args
from cli.dispatch import run_mode
from pipeline.wiring import configure_logging, load_environment


# -------------------------------------------------------------------
# CLI entrypoint
# -------------------------------------------------------------------

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Drive xcodebuild, agvtool and xcrun for one build job.")
    add_base_args(parser)
    add_build_args(parser)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    # .env first so tool path overrides and job variables are visible.
    load_environment(Path(args.env_file) if args.env_file else None)
    configure_logging(args.verbose)

    raise SystemExit(run_mode(args))


if __name__ == "__main__":
    main()
