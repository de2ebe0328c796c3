"""tools/xcodebuild/test_reports.py

JUnit XML reports for XCTest results seen in ``xcodebuild`` output.

One file per test suite, ``TEST-<suite>.xml``, written when the suite ends
(or when the parser is closed with a suite still open). Only the suite that is
currently running is held in memory.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from xcode_build.io import ensure_dir

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class TestCaseResult:
    classname: str
    name: str
    time: float = 0.0
    failures: List[str] = field(default_factory=list)

    # Not a pytest test class.
    __test__ = False


@dataclass
class _Suite:
    name: str
    started_at: str = ""
    cases: List[TestCaseResult] = field(default_factory=list)


class TestReportWriter:
    """Accumulates the running suite and writes it as JUnit XML."""

    __test__ = False

    def __init__(self, report_dir: Path) -> None:
        self.report_dir = Path(report_dir)
        self.written: List[Path] = []
        self._suite: Optional[_Suite] = None
        self._case: Optional[TestCaseResult] = None

    def start_suite(self, name: str, started_at: str = "") -> None:
        if self._suite is not None:
            self._flush()
        self._suite = _Suite(name=name, started_at=started_at)

    def start_case(self, classname: str, name: str) -> None:
        self._ensure_suite(classname)
        self._case = TestCaseResult(classname=classname, name=name)

    def record_failure(self, classname: str, name: str, message: str) -> None:
        case = self._current_case(classname, name)
        case.failures.append(message)

    def end_case(self, classname: str, name: str, seconds: float, *, failed: bool) -> None:
        case = self._current_case(classname, name)
        case.time = seconds
        if failed and not case.failures:
            case.failures.append("failed")
        assert self._suite is not None
        self._suite.cases.append(case)
        self._case = None

    def end_suite(self, name: str) -> None:
        if self._suite is not None and self._suite.name == name:
            self._flush()

    def close(self) -> None:
        if self._suite is not None:
            self._flush()

    # ------------------------------------------------------------------

    def _ensure_suite(self, classname: str) -> None:
        if self._suite is None:
            self._suite = _Suite(name=classname)

    def _current_case(self, classname: str, name: str) -> TestCaseResult:
        if self._case is None or (self._case.classname, self._case.name) != (classname, name):
            self._ensure_suite(classname)
            self._case = TestCaseResult(classname=classname, name=name)
        return self._case

    def _flush(self) -> None:
        suite = self._suite
        self._suite = None
        self._case = None
        if suite is None or not suite.cases:
            return

        failures = sum(1 for c in suite.cases if c.failures)
        root = ET.Element(
            "testsuite",
            {
                "name": suite.name,
                "tests": str(len(suite.cases)),
                "failures": str(failures),
                "errors": "0",
                "time": f"{sum(c.time for c in suite.cases):.3f}",
                "timestamp": suite.started_at,
            },
        )
        for case in suite.cases:
            el = ET.SubElement(
                root,
                "testcase",
                {"classname": case.classname, "name": case.name, "time": f"{case.time:.3f}"},
            )
            for message in case.failures:
                failure = ET.SubElement(el, "failure", {"message": message})
                failure.text = message

        ensure_dir(self.report_dir)
        path = self.report_dir / f"TEST-{_UNSAFE.sub('_', suite.name)}.xml"
        ET.ElementTree(root).write(str(path), encoding="utf-8", xml_declaration=True)
        self.written.append(path)
        logger.info("Wrote test report %s (%d tests, %d failures)", path, len(suite.cases), failures)
