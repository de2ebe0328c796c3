import unittest
from pathlib import Path

from pipeline.layout import (
    infer_platform,
    junit_reports_dir,
    resolve_build_directory,
    resolve_ipa_output_dir,
)


class TestPlatformInference(unittest.TestCase):
    def test_simulator_detected_case_insensitively(self) -> None:
        self.assertEqual("iphonesimulator", infer_platform("iphonesimulator17.2"))
        self.assertEqual("iphonesimulator", infer_platform("iPhoneSimulator"))

    def test_everything_else_is_device(self) -> None:
        for sdk in ["", "iphoneos", "iphoneos17.2", "macosx"]:
            self.assertEqual("iphoneos", infer_platform(sdk), sdk)


class TestBuildDirectory(unittest.TestCase):
    def test_override_wins(self) -> None:
        d = resolve_build_directory(
            Path("/w/proj"), "Release", "iphoneos", symroot="/sym", configuration_build_dir="/out"
        )
        self.assertEqual(Path("/out"), d)

    def test_symroot_next(self) -> None:
        d = resolve_build_directory(Path("/w/proj"), "Debug", "iphonesimulator", symroot="/sym")
        self.assertEqual(Path("/sym/Debug-iphonesimulator"), d)

    def test_conventional_default(self) -> None:
        d = resolve_build_directory(Path("/w/proj"), "Release", "iphoneos")
        self.assertEqual(Path("/w/proj/build/Release-iphoneos"), d)

    def test_blank_values_count_as_unset(self) -> None:
        d = resolve_build_directory(
            Path("/w"), "Release", "iphoneos", symroot="  ", configuration_build_dir=""
        )
        self.assertEqual(Path("/w/build/Release-iphoneos"), d)


class TestOutputPaths(unittest.TestCase):
    def test_ipa_output_dir(self) -> None:
        self.assertEqual(Path("/ws/dist"), resolve_ipa_output_dir(Path("/ws"), "dist", Path("/b")))
        self.assertEqual(Path("/b"), resolve_ipa_output_dir(Path("/ws"), "", Path("/b")))

    def test_reports_dir(self) -> None:
        self.assertEqual(Path("/w/p/test-reports"), junit_reports_dir(Path("/w/p")))


if __name__ == "__main__":
    unittest.main()
