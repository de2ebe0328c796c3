from __future__ import annotations

import argparse
from pathlib import Path
from typing import Mapping

from cli.common import load_request
from cli.ui import print_report
from pipeline.orchestrator import BuildOrchestrator
from xcode_build.io import write_json_atomic


def run_build_mode(
    args: argparse.Namespace,
    orchestrator: BuildOrchestrator,
    *,
    env: Mapping[str, str],
) -> int:
    request = load_request(args, env)

    print("\n🚀 Running build")
    print(f"  Workspace : {request.workspace}")
    print(f"  Selection : {request.scheme or request.target or '(all targets)'}")

    report = orchestrator.run(request, env)

    if args.metadata_out:
        out = Path(args.metadata_out)
        write_json_atomic(out, report.to_dict())
        print(f"  Metadata  : {out}")

    print_report(report)
    return 0
