"""cli.common

Small shared helpers for CLI command modules.

The CLI is split by "mode" (build/restore-keychains/list-targets). Turning the
job file plus command-line overrides into a :class:`BuildRequest` is needed by
more than one mode; keeping it here avoids subtle drift between them.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict, Mapping

from cli.args.build import request_overrides
from pipeline.expansion import expand_env
from pipeline.job import build_request_from_mapping, load_job_mapping, migrate_legacy_job
from xcode_build.domain import BuildRequest

# Ad-hoc keychain passwords are never taken from the command line.
KEYCHAIN_PASSWORD_ENV = "KEYCHAIN_PASSWORD"


def load_request(args: argparse.Namespace, env: Mapping[str, str]) -> BuildRequest:
    """Job file, then CLI overrides, then ``${VAR}`` expansion against *env*."""
    raw: Dict[str, Any] = {}
    if getattr(args, "job_path", None):
        raw = migrate_legacy_job(load_job_mapping(Path(args.job_path)))
    raw.update(request_overrides(args))

    if raw.get("keychain_path") and not raw.get("keychain_password") and env.get(KEYCHAIN_PASSWORD_ENV):
        raw["keychain_password"] = env[KEYCHAIN_PASSWORD_ENV]

    workspace = Path(args.workspace).resolve() if getattr(args, "workspace", None) else Path.cwd()
    request = build_request_from_mapping(raw, workspace=workspace)
    return request.expanded(lambda s: expand_env(s, env))
