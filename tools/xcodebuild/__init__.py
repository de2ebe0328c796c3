"""tools/xcodebuild

``xcodebuild`` adapter: command plumbing, ``-list`` parsing, and the streaming
output parser that decides whether a build really passed.
"""

from __future__ import annotations

from .list_parser import XcodeListing, parse_list_output
from .output_parser import BuildOutputParser
from .runner import (
    LIST_TIMEOUT_SECONDS,
    ListResult,
    list_project,
    run_build,
    show_sdks,
    workspace_or_project_args,
    xcodebuild_version,
)
from .test_reports import TestReportWriter

__all__ = [
    "LIST_TIMEOUT_SECONDS",
    "BuildOutputParser",
    "ListResult",
    "TestReportWriter",
    "XcodeListing",
    "list_project",
    "parse_list_output",
    "run_build",
    "show_sdks",
    "workspace_or_project_args",
    "xcodebuild_version",
]
