from __future__ import annotations

import argparse
from typing import Mapping

from cli.common import load_request
from cli.ui import print_listing
from pipeline.config import ToolConfig
from tools.core_cmd import CommandRunner
from tools.xcodebuild import list_project


def run_list_targets(
    args: argparse.Namespace,
    config: ToolConfig,
    runner: CommandRunner,
    *,
    env: Mapping[str, str],
) -> int:
    request = load_request(args, env)
    print(f"\n📂 Listing {request.workspace_file or request.project_file or request.working_dir}")

    result = list_project(
        runner,
        config.xcodebuild,
        workspace_file=request.workspace_file,
        project_file=request.project_file,
        env=env,
        cwd=request.working_dir,
    )
    if result.timed_out:
        print("\n⚠️ 'xcodebuild -list' timed out; showing what was printed before the deadline.")
    elif result.exit_code != 0:
        print(f"\n❌ 'xcodebuild -list' exited with {result.exit_code}")
        return result.exit_code

    print_listing(result.listing)
    return 0
