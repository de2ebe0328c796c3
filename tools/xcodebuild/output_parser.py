"""tools/xcodebuild/output_parser.py

Streaming classifier for ``xcodebuild`` output.

Why this exists
---------------
``xcodebuild`` mixes compiler diagnostics, script output and its own status
lines on stdout, and its process exit code cannot be trusted: it has been seen
to exit 0 after printing ``** BUILD FAILED **`` and to exit non-zero after a
successful archive. The pipeline therefore re-derives the outcome from the
terminal markers the tool prints (``** BUILD SUCCEEDED **``,
``** ARCHIVE FAILED **``, ...).

Rules
-----
* Once any failure marker (or ``failed with exit code N``) is seen, the run
  has failed, whatever comes after it.
* A run that ends without any terminal marker has failed.
* Lines are handled one at a time; nothing but counters and the running test
  case is kept.

Lines that are not terminal markers are forwarded unchanged to the sink.
XCTest progress lines are additionally turned into JUnit reports when a
:class:`~tools.xcodebuild.test_reports.TestReportWriter` is attached.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from tools.xcodebuild.test_reports import TestReportWriter

logger = logging.getLogger(__name__)
output_logger = logging.getLogger("tools.xcodebuild.output")

MARKER_RE = re.compile(
    r"^\*\* (BUILD|ARCHIVE|TEST|TEST BUILD|CLEAN|ANALYZE|INSTALL) (SUCCEEDED|FAILED|INTERRUPTED) \*\*"
)
FAILED_WITH_EXIT_CODE_RE = re.compile(r"failed with exit code (\d+)")

START_SUITE_RE = re.compile(r"Test Suite '([^']+)' started at\s+(.*)")
END_SUITE_RE = re.compile(r"Test Suite '([^']+)' (?:passed|failed) at\s+(.*)")
START_CASE_RE = re.compile(r"Test Case '-\[(\S+)\s+(\S+)\]' started\.")
PASSED_CASE_RE = re.compile(r"Test Case '-\[(\S+)\s+(\S+)\]' passed \((\S+) seconds\)\.")
FAILED_CASE_RE = re.compile(r"Test Case '-\[(\S+)\s+(\S+)\]' failed \((\S+) seconds\)\.")
ERROR_CASE_RE = re.compile(r"(.*): error: -\[(\S+)\s+(\S+)\] : (.*)")


def _log_output(line: str) -> None:
    output_logger.info("%s", line)


def _seconds(raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        return 0.0


class BuildOutputParser:
    """Consume build output line by line and decide pass/fail.

    Instances are callable so they can be handed to
    :meth:`tools.core_cmd.CommandRunner.run` as the ``stdout_sink``.
    """

    def __init__(
        self,
        *,
        sink: Optional[Callable[[str], None]] = None,
        reports: Optional[TestReportWriter] = None,
    ) -> None:
        self._sink = sink or _log_output
        self._reports = reports
        self.success_markers = 0
        self.failure_markers = 0
        self.failure_exit_code: Optional[int] = None
        self.failed_tests = 0
        self._closed = False

    def __call__(self, line: str) -> None:
        self.feed(line)

    def feed(self, line: str) -> None:
        stripped = line.strip()

        m = MARKER_RE.match(stripped)
        if m:
            if m.group(2) == "SUCCEEDED":
                self.success_markers += 1
            else:
                self.failure_markers += 1
            logger.info("xcodebuild reported: %s %s", m.group(1), m.group(2))
            return

        m = FAILED_WITH_EXIT_CODE_RE.search(stripped)
        if m:
            code = int(m.group(1))
            if code != 0 and self.failure_exit_code is None:
                self.failure_exit_code = code

        self._track_tests(stripped)
        self._sink(line)

    def close(self) -> None:
        """Signal end of stream; flushes any open test report."""
        if self._closed:
            return
        self._closed = True
        if self._reports is not None:
            self._reports.close()
        if self.failed_tests:
            logger.warning("%d test case(s) failed.", self.failed_tests)
        if not self.has_terminal_marker:
            logger.warning("Build output ended without a terminal marker; treating the build as failed.")

    @property
    def has_terminal_marker(self) -> bool:
        return bool(self.success_markers or self.failure_markers)

    @property
    def failed(self) -> bool:
        return bool(self.failure_markers or self.failure_exit_code is not None)

    @property
    def exit_code(self) -> int:
        """Authoritative exit code: 0 only if success was seen and no failure."""
        if self.failed:
            return self.failure_exit_code or 1
        if self.success_markers:
            return 0
        return 1

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    # ------------------------------------------------------------------

    def _track_tests(self, line: str) -> None:
        if "Test " not in line and ": error: -[" not in line:
            return

        m = START_SUITE_RE.search(line)
        if m:
            if self._reports is not None:
                self._reports.start_suite(m.group(1), m.group(2).strip())
            return

        m = END_SUITE_RE.search(line)
        if m:
            if self._reports is not None:
                self._reports.end_suite(m.group(1))
            return

        m = START_CASE_RE.search(line)
        if m:
            if self._reports is not None:
                self._reports.start_case(m.group(1), m.group(2))
            return

        m = PASSED_CASE_RE.search(line)
        if m:
            if self._reports is not None:
                self._reports.end_case(m.group(1), m.group(2), _seconds(m.group(3)), failed=False)
            return

        m = FAILED_CASE_RE.search(line)
        if m:
            self.failed_tests += 1
            if self._reports is not None:
                self._reports.end_case(m.group(1), m.group(2), _seconds(m.group(3)), failed=True)
            return

        m = ERROR_CASE_RE.search(line)
        if m and self._reports is not None:
            self._reports.record_failure(m.group(2), m.group(3), f"{m.group(1)}: {m.group(4)}")
