"""pipeline.wiring

This module is the **composition root** for the Python runtime.

"Composition root" means: the single place where we *assemble* the running
application from its building blocks:

- load environment variables (``.env``) and the tool configuration
- configure logging
- choose the real subprocess runner (tests pass their own)
- build the :class:`~pipeline.orchestrator.BuildOrchestrator`

Keeping this wiring in one place prevents configuration and dependency setup
from being duplicated across entrypoints (CLI, scripts, CI).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from pipeline.config import ToolConfig, load_tool_config
from pipeline.orchestrator import BuildOrchestrator
from tools.core_cmd import CommandRunner

ENV_PATH: Path = Path.cwd() / ".env"
DEFAULT_CONFIG_NAME = "xcode-pipeline.yaml"

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


def load_environment(dotenv_path: Optional[Path] = None) -> None:
    """Load ``.env`` into ``os.environ`` without overriding variables already set."""
    p = Path(dotenv_path) if dotenv_path else ENV_PATH
    if p.exists():
        load_dotenv(p, override=False)


def default_config_path() -> Optional[Path]:
    p = Path.cwd() / DEFAULT_CONFIG_NAME
    return p if p.exists() else None


def build_config(
    config_path: Optional[Path] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> ToolConfig:
    return load_tool_config(config_path or default_config_path(), env=env)


def build_orchestrator(
    config: Optional[ToolConfig] = None,
    *,
    config_path: Optional[Path] = None,
    runner: Optional[CommandRunner] = None,
    env: Optional[Mapping[str, str]] = None,
) -> BuildOrchestrator:
    """Build the orchestrator from configuration on disk (or the given config)."""
    if config is None:
        config = build_config(config_path, env=os.environ if env is None else env)
    return BuildOrchestrator(config, runner or CommandRunner())
