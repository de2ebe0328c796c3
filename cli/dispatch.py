from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Mapping, Optional

from cli.commands.build import run_build_mode
from cli.commands.keychains import run_restore_keychains
from cli.commands.targets import run_list_targets
from cli.ui import print_error
from pipeline.wiring import build_config, build_orchestrator
from tools.core_cmd import CommandRunner
from xcode_build.errors import BuildFailure, PipelineError


def run_mode(
    args: argparse.Namespace,
    *,
    env: Optional[Mapping[str, str]] = None,
    runner: Optional[CommandRunner] = None,
) -> int:
    """Run the selected mode; returns the process exit status."""
    env = dict(os.environ if env is None else env)
    runner = runner or CommandRunner()

    try:
        config = build_config(Path(args.config_path) if args.config_path else None, env=env)

        if args.mode == "restore-keychains":
            return run_restore_keychains(config, runner, env=env)
        if args.mode == "list-targets":
            return run_list_targets(args, config, runner, env=env)

        orchestrator = build_orchestrator(config, runner=runner)
        return run_build_mode(args, orchestrator, env=env)

    except BuildFailure as e:
        print_error(e.reason)
        return e.outcome.parser_exit_code or 1
    except PipelineError as e:
        print_error(e.reason)
        return 1
