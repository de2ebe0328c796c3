from __future__ import annotations

import argparse

MODES = ("build", "restore-keychains", "list-targets")


def add_base_args(parser: argparse.ArgumentParser) -> None:
    """Register CLI flags that are shared across all modes.

    This includes:
    - mode selection
    - where configuration comes from (tool config, .env, job file)
    - the workspace root
    - logging verbosity
    """

    parser.add_argument(
        "--mode",
        choices=MODES,
        default="build",
        help=(
            "build = run the full pipeline, restore-keychains = re-apply the configured keychain "
            "search list, list-targets = print what 'xcodebuild -list' reports"
        ),
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        help="Tool configuration YAML (default: ./xcode-pipeline.yaml when present).",
    )
    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Dotenv file to load before anything else (default: ./.env). Never overrides set variables.",
    )
    parser.add_argument(
        "--job",
        dest="job_path",
        help="Job definition YAML (BuildRequest fields; legacy camelCase names accepted).",
    )
    parser.add_argument(
        "--workspace",
        help="Workspace root the job's relative paths are resolved against (default: current directory).",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging.")
