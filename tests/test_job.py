import tempfile
import unittest
from pathlib import Path

from pipeline.job import (
    build_request_from_mapping,
    load_job_yaml,
    migrate_legacy_job,
    migrate_provide_application_version,
)
from xcode_build.domain import ToggleState
from xcode_build.errors import ConfigurationError


class TestProvideVersionMigration(unittest.TestCase):
    def test_explicit_states_are_kept(self) -> None:
        self.assertIs(ToggleState.DISABLED, migrate_provide_application_version(ToggleState.DISABLED, "1", ""))
        self.assertIs(ToggleState.ENABLED, migrate_provide_application_version(ToggleState.ENABLED, "", ""))

    def test_unset_follows_templates(self) -> None:
        self.assertIs(ToggleState.ENABLED, migrate_provide_application_version(ToggleState.UNSET, "", "1.0"))
        self.assertIs(ToggleState.ENABLED, migrate_provide_application_version(ToggleState.UNSET, "${B}", ""))
        self.assertIs(ToggleState.DISABLED, migrate_provide_application_version(ToggleState.UNSET, " ", ""))


class TestLegacyNames(unittest.TestCase):
    def test_renamed(self) -> None:
        out = migrate_legacy_job({"xcodeSchema": "App", "keychainPwd": "pw", "sdk": "iphoneos"})
        self.assertEqual({"scheme": "App", "keychain_password": "pw", "sdk": "iphoneos"}, out)

    def test_duplicate_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            migrate_legacy_job({"xcodeSchema": "A", "scheme": "B"})


class TestBuildRequestFromMapping(unittest.TestCase):
    def test_legacy_job(self) -> None:
        req = build_request_from_mapping(
            {
                "xcodeSchema": "MyApp",
                "cfBundleVersionValue": "${BUILD_NUMBER}",
                "buildIpa": "true",
                "interpretTargetAsRegEx": False,
                "provideApplicationVersion": None,
            },
            workspace=Path("/ws"),
        )
        self.assertEqual("MyApp", req.scheme)
        self.assertTrue(req.build_ipa)
        self.assertFalse(req.interpret_target_as_regex)
        self.assertIs(ToggleState.ENABLED, req.provide_application_version)
        self.assertEqual(Path("/ws"), req.workspace)

    def test_unknown_field(self) -> None:
        with self.assertRaises(ConfigurationError):
            build_request_from_mapping({"schemeName": "x"})

    def test_bad_bool(self) -> None:
        with self.assertRaises(ConfigurationError):
            build_request_from_mapping({"build_ipa": "maybe"})

    def test_bad_toggle(self) -> None:
        with self.assertRaises(ConfigurationError):
            build_request_from_mapping({"provide_application_version": "sometimes"})

    def test_none_becomes_empty(self) -> None:
        req = build_request_from_mapping({"sdk": None, "configuration": "Debug"})
        self.assertEqual("", req.sdk)
        self.assertEqual("Debug", req.configuration)
        self.assertIs(ToggleState.DISABLED, req.provide_application_version)

    def test_password_not_in_repr(self) -> None:
        req = build_request_from_mapping({"keychain_password": "hunter2"})
        self.assertNotIn("hunter2", repr(req))


class TestYaml(unittest.TestCase):
    def test_load(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "job.yaml"
            p.write_text("target: MyApp\nclean_before_build: yes\nprovide_application_version: disabled\n", encoding="utf-8")
            req = load_job_yaml(p, workspace=Path(td))
        self.assertEqual("MyApp", req.target)
        self.assertTrue(req.clean_before_build)
        self.assertIs(ToggleState.DISABLED, req.provide_application_version)

    def test_invalid_yaml(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "job.yaml"
            p.write_text("target: [unclosed\n", encoding="utf-8")
            with self.assertRaises(ConfigurationError):
                load_job_yaml(p)

    def test_missing(self) -> None:
        with self.assertRaises(ConfigurationError):
            load_job_yaml(Path("/definitely/not/here.yaml"))


if __name__ == "__main__":
    unittest.main()
