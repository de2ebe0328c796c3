import tempfile
import unittest
from pathlib import Path

from pipeline.config import (
    DEFAULT_TOOL_PATHS,
    ToolConfig,
    apply_env_overrides,
    load_tool_config,
    migrate_config,
)
from xcode_build.errors import ConfigurationError


class TestToolConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = ToolConfig.from_dict({})
        self.assertEqual(DEFAULT_TOOL_PATHS["xcodebuild"], cfg.xcodebuild)
        self.assertEqual((), cfg.keychains)

    def test_unknown_tool_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            ToolConfig.from_dict({"tools": {"swiftc": "/usr/bin/swiftc"}})

    def test_find_keychain(self) -> None:
        cfg = ToolConfig.from_dict({"keychains": [{"name": "ci", "path": "/k/ci.keychain"}]})
        self.assertEqual("/k/ci.keychain", cfg.find_keychain("ci").path)
        self.assertIsNone(cfg.find_keychain("other"))
        self.assertIsNone(cfg.find_keychain(""))


class TestMigration(unittest.TestCase):
    def test_v1_is_upgraded(self) -> None:
        raw = {
            "xcodebuildPath": "/opt/xcodebuild",
            "defaultKeychain": "ci",
            "keychains": [
                {"keychainName": "ci", "keychainPath": "/k/ci", "keychainPassword": "s", "inSearchPath": True}
            ],
        }
        data = migrate_config(raw)
        self.assertEqual(2, data["config_version"])
        cfg = ToolConfig.from_dict(data)
        self.assertEqual("/opt/xcodebuild", cfg.xcodebuild)
        self.assertEqual("ci", cfg.default_keychain)
        self.assertEqual("s", cfg.keychains[0].password)
        self.assertTrue(cfg.keychains[0].in_search_path)
        self.assertIn("keychainName", raw["keychains"][0])

    def test_newer_version_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            migrate_config({"config_version": 99})


class TestLoading(unittest.TestCase):
    def test_env_overrides_win(self) -> None:
        cfg = apply_env_overrides(ToolConfig(), {"XCRUN_PATH": "/x/xcrun", "DITTO_PATH": ""})
        self.assertEqual("/x/xcrun", cfg.xcrun)
        self.assertEqual(DEFAULT_TOOL_PATHS["ditto"], cfg.ditto)

    def test_yaml_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "xcode-pipeline.yaml"
            p.write_text(
                "config_version: 2\n"
                "tools:\n"
                "  agvtool: /opt/agvtool\n"
                "keychains:\n"
                "  - name: ci\n"
                "    path: /k/ci.keychain\n"
                "    in_search_path: true\n",
                encoding="utf-8",
            )
            cfg = load_tool_config(p, env={"XCODEBUILD_PATH": "/env/xcodebuild"})
        self.assertEqual("/opt/agvtool", cfg.agvtool)
        self.assertEqual("/env/xcodebuild", cfg.xcodebuild)
        self.assertEqual("ci", cfg.keychains[0].name)

    def test_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(ConfigurationError):
                load_tool_config(Path(td) / "nope.yaml", env={})

    def test_top_level_must_be_mapping(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "c.yaml"
            p.write_text("- a\n- b\n", encoding="utf-8")
            with self.assertRaises(ConfigurationError):
                load_tool_config(p, env={})


if __name__ == "__main__":
    unittest.main()
