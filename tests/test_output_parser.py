import tempfile
import unittest
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List

from tools.xcodebuild import BuildOutputParser, TestReportWriter


def feed_all(parser: BuildOutputParser, lines: List[str]) -> BuildOutputParser:
    for line in lines:
        parser.feed(line)
    parser.close()
    return parser


class TestBuildOutputParser(unittest.TestCase):
    def test_success_marker_gives_exit_zero(self) -> None:
        seen: List[str] = []
        p = feed_all(BuildOutputParser(sink=seen.append), ["CompileC foo.m", "** BUILD SUCCEEDED **"])
        self.assertEqual(0, p.exit_code)
        self.assertTrue(p.succeeded)
        self.assertEqual(["CompileC foo.m"], seen)

    def test_non_marker_lines_are_forwarded_unmodified(self) -> None:
        seen: List[str] = []
        lines = ["  indented line  ", "warning: something", ""]
        feed_all(BuildOutputParser(sink=seen.append), lines + ["** BUILD SUCCEEDED **"])
        self.assertEqual(lines, seen)

    def test_no_marker_means_failure(self) -> None:
        p = feed_all(BuildOutputParser(sink=lambda _l: None), ["Ld MyApp", "Touch MyApp.app"])
        self.assertFalse(p.has_terminal_marker)
        self.assertEqual(1, p.exit_code)

    def test_empty_stream_means_failure(self) -> None:
        p = feed_all(BuildOutputParser(sink=lambda _l: None), [])
        self.assertEqual(1, p.exit_code)

    def test_failure_is_sticky_over_later_success(self) -> None:
        p = feed_all(
            BuildOutputParser(sink=lambda _l: None),
            ["** BUILD FAILED **", "** CLEAN SUCCEEDED **", "** BUILD SUCCEEDED **"],
        )
        self.assertTrue(p.failed)
        self.assertEqual(1, p.exit_code)

    def test_archive_failed_marker(self) -> None:
        p = feed_all(BuildOutputParser(sink=lambda _l: None), ["** ARCHIVE FAILED **"])
        self.assertEqual(1, p.exit_code)

    def test_marker_is_matched_on_stripped_line(self) -> None:
        p = feed_all(BuildOutputParser(sink=lambda _l: None), ["   ** ARCHIVE SUCCEEDED **   "])
        self.assertEqual(0, p.exit_code)

    def test_failed_with_exit_code_is_recorded(self) -> None:
        p = feed_all(
            BuildOutputParser(sink=lambda _l: None),
            [
                "Command /bin/sh failed with exit code 65",
                "** BUILD SUCCEEDED **",
            ],
        )
        self.assertEqual(65, p.exit_code)
        self.assertFalse(p.succeeded)

    def test_recorded_code_wins_over_failure_marker(self) -> None:
        p = feed_all(
            BuildOutputParser(sink=lambda _l: None),
            ["Command CodeSign failed with exit code 2", "** BUILD FAILED **"],
        )
        self.assertEqual(2, p.exit_code)

    def test_parser_is_callable_as_sink(self) -> None:
        p = BuildOutputParser(sink=lambda _l: None)
        p("** TEST SUCCEEDED **")
        p.close()
        self.assertEqual(0, p.exit_code)


    def test_failed_test_cases_are_reported_on_close(self) -> None:
        p = BuildOutputParser(sink=lambda _l: None)
        p.feed("Test Case '-[MyAppTests testFails]' failed (0.010 seconds).")
        p.feed("** TEST FAILED **")
        with self.assertLogs("tools.xcodebuild.output_parser", level="WARNING") as logs:
            p.close()
        self.assertEqual(1, p.failed_tests)
        self.assertIn("1 test case(s) failed", logs.output[0])


class TestJUnitReports(unittest.TestCase):
    def test_suite_written_as_junit_xml(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            report_dir = Path(td) / "test-reports"
            writer = TestReportWriter(report_dir)
            p = BuildOutputParser(sink=lambda _l: None, reports=writer)
            feed_all(
                p,
                [
                    "Test Suite 'All tests' started at 2024-01-01 10:00:00.000",
                    "Test Suite 'MyAppTests' started at 2024-01-01 10:00:00.001",
                    "Test Case '-[MyAppTests testAdds]' started.",
                    "Test Case '-[MyAppTests testAdds]' passed (0.002 seconds).",
                    "Test Case '-[MyAppTests testFails]' started.",
                    "/src/MyAppTests.m:42: error: -[MyAppTests testFails] : XCTAssertEqual failed",
                    "Test Case '-[MyAppTests testFails]' failed (0.010 seconds).",
                    "Test Suite 'MyAppTests' failed at 2024-01-01 10:00:00.020",
                    "** TEST FAILED **",
                ],
            )

            self.assertEqual(1, p.failed_tests)
            report = report_dir / "TEST-MyAppTests.xml"
            self.assertEqual([report], writer.written)

            root = ET.parse(str(report)).getroot()
            self.assertEqual("MyAppTests", root.get("name"))
            self.assertEqual("2", root.get("tests"))
            self.assertEqual("1", root.get("failures"))
            cases = {c.get("name"): c for c in root.findall("testcase")}
            self.assertIsNone(cases["testAdds"].find("failure"))
            failure = cases["testFails"].find("failure")
            self.assertIsNotNone(failure)
            self.assertIn("XCTAssertEqual failed", failure.get("message"))


if __name__ == "__main__":
    unittest.main()
