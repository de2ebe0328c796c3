import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

from cli.common import load_request
from cli.dispatch import run_mode
from tests.fake_runner import FakeRunner
from xcode_cli import parse_args


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        self.xcodebuild = self.root / "xcodebuild"
        self.agvtool = self.root / "agvtool"
        self.xcodebuild.write_text("", encoding="utf-8")
        self.agvtool.write_text("", encoding="utf-8")
        self.env = {
            "XCODEBUILD_PATH": str(self.xcodebuild),
            "AGVTOOL_PATH": str(self.agvtool),
            "SECURITY_PATH": "security",
        }
        self.runner = FakeRunner()
        self.runner.script(str(self.xcodebuild), output="** BUILD SUCCEEDED **")
        self.runner.script(str(self.xcodebuild), "-list", output="    Targets:\n        MyApp\n")

    def tearDown(self) -> None:
        self._td.cleanup()

    def invoke(self, *argv: str):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = run_mode(parse_args(["--workspace", str(self.root), *argv]), env=self.env, runner=self.runner)
        return code, out.getvalue(), err.getvalue()


class TestBuildMode(CliTestCase):
    def test_success_writes_metadata(self) -> None:
        self.runner.script(str(self.agvtool), "mvers", "-terse1", output="1.0")
        self.runner.script(str(self.agvtool), "vers", "-terse", output="5")
        meta = self.root / "out" / "build.json"
        code, out, _ = self.invoke("--target", "MyApp", "--metadata-out", str(meta))
        self.assertEqual(0, code)
        self.assertIn("✅", out)
        data = json.loads(meta.read_text(encoding="utf-8"))
        self.assertEqual("1.0 (5)", data["metadata"]["XCODE_BUILD_NUMBER"])
        self.assertEqual("SUCCEEDED", data["outcome"]["classification"])

    def test_build_failure_exit_code(self) -> None:
        self.runner.script(str(self.xcodebuild), "-target", output="** BUILD FAILED **")
        code, _, err = self.invoke("--target", "MyApp")
        self.assertEqual(1, code)
        self.assertIn("❌", err)

    def test_missing_tool_is_reported(self) -> None:
        self.agvtool.unlink()
        code, _, err = self.invoke("--target", "MyApp")
        self.assertEqual(1, code)
        self.assertIn("agvtool", err)
        self.assertEqual([], self.runner.calls)

    def test_missing_job_file(self) -> None:
        code, _, err = self.invoke("--job", str(self.root / "missing.yaml"))
        self.assertEqual(1, code)
        self.assertIn("Job definition not found", err)


class TestOtherModes(CliTestCase):
    def test_list_targets(self) -> None:
        code, out, _ = self.invoke("--mode", "list-targets", "--project-file", "MyApp.xcodeproj")
        self.assertEqual(0, code)
        self.assertIn("- MyApp", out)
        [listing] = self.runner.matching(str(self.xcodebuild), "-list")
        self.assertEqual(["-project", "MyApp.xcodeproj"], listing.cmd[2:])

    def test_restore_keychains_unstable(self) -> None:
        self.runner.script("security", "list-keychains", exit_code=1)
        code, out, _ = self.invoke("--mode", "restore-keychains")
        self.assertEqual(2, code)
        self.assertIn("unstable", out)


class TestLoadRequest(unittest.TestCase):
    def test_job_file_then_overrides_then_expansion(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            job = Path(td) / "job.yaml"
            job.write_text(
                "xcodeSchema: Old\nsdk: iphoneos\nipaName: ${APP}-${BUILD_DATE}\nkeychainPath: ${HOME}/ci.keychain\n",
                encoding="utf-8",
            )
            args = parse_args(["--job", str(job), "--workspace", td, "--scheme", "New", "--build-ipa"])
            req = load_request(args, {"APP": "MyApp", "HOME": "/Users/ci", "KEYCHAIN_PASSWORD": "pw"})

        self.assertEqual("New", req.scheme)
        self.assertEqual("iphoneos", req.sdk)
        self.assertTrue(req.build_ipa)
        self.assertFalse(req.clean_before_build)
        self.assertEqual("MyApp-${BUILD_DATE}", req.ipa_name)
        self.assertEqual("/Users/ci/ci.keychain", req.keychain_path)
        self.assertEqual("pw", req.keychain_password)
        self.assertEqual(Path(td).resolve(), req.workspace)


if __name__ == "__main__":
    unittest.main()
