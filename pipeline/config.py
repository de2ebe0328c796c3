"""pipeline.config

Tool configuration: where the Apple tools live and which keychains exist.

This replaces a global, mutable "descriptor" singleton with one immutable
:class:`ToolConfig` that is assembled once at start-up and handed to the
orchestrator explicitly.

Sources, lowest precedence first:

1. built-in macOS defaults (:data:`DEFAULT_TOOL_PATHS`)
2. the YAML config file (``xcode-pipeline.yaml``)
3. environment variables (``XCODEBUILD_PATH`` ...), typically from ``.env``

File format (v2)::

    config_version: 2
    tools:
      xcodebuild: /usr/bin/xcodebuild
      agvtool: /usr/bin/agvtool
      xcrun: /usr/bin/xcrun
    keychains:
      - name: ci
        path: /Users/ci/Library/Keychains/ci.keychain
        password: ${CI_KEYCHAIN_PASSWORD}
        in_search_path: true
    default_keychain: ci

Version 1 files use the legacy camelCase keys (``xcodebuildPath``,
``keychainName``, ...) and are upgraded by :func:`migrate_v1_to_v2`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from xcode_build.domain import Keychain
from xcode_build.errors import ConfigurationError

logger = logging.getLogger(__name__)

CURRENT_CONFIG_VERSION = 2

DEFAULT_TOOL_PATHS: Dict[str, str] = {
    "xcodebuild": "/usr/bin/xcodebuild",
    "agvtool": "/usr/bin/agvtool",
    "xcrun": "/usr/bin/xcrun",
    "plistbuddy": "/usr/libexec/PlistBuddy",
    "security": "/usr/bin/security",
    "ditto": "/usr/bin/ditto",
}

TOOL_ENV_VARS: Dict[str, str] = {
    "xcodebuild": "XCODEBUILD_PATH",
    "agvtool": "AGVTOOL_PATH",
    "xcrun": "XCRUN_PATH",
    "plistbuddy": "PLISTBUDDY_PATH",
    "security": "SECURITY_PATH",
    "ditto": "DITTO_PATH",
}


@dataclass(frozen=True)
class ToolConfig:
    xcodebuild: str = DEFAULT_TOOL_PATHS["xcodebuild"]
    agvtool: str = DEFAULT_TOOL_PATHS["agvtool"]
    xcrun: str = DEFAULT_TOOL_PATHS["xcrun"]
    plistbuddy: str = DEFAULT_TOOL_PATHS["plistbuddy"]
    security: str = DEFAULT_TOOL_PATHS["security"]
    ditto: str = DEFAULT_TOOL_PATHS["ditto"]
    keychains: Tuple[Keychain, ...] = field(default_factory=tuple)
    default_keychain: str = ""

    def find_keychain(self, name: str) -> Optional[Keychain]:
        if not name:
            return None
        return next((k for k in self.keychains if k.name == name), None)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ToolConfig":
        """Build from a v2 mapping (see module docstring)."""
        tools = raw.get("tools") or {}
        if not isinstance(tools, Mapping):
            raise ConfigurationError("'tools' must be a mapping of tool name to path.")
        unknown = set(tools) - set(DEFAULT_TOOL_PATHS)
        if unknown:
            raise ConfigurationError(f"Unknown tool(s) in config: {sorted(unknown)}")

        keychains_raw = raw.get("keychains") or []
        if not isinstance(keychains_raw, list):
            raise ConfigurationError("'keychains' must be a list.")
        keychains: List[Keychain] = []
        for k in keychains_raw:
            if not isinstance(k, Mapping):
                raise ConfigurationError(f"Keychain entries must be mappings, got: {type(k).__name__}")
            keychains.append(Keychain.from_dict(k))

        paths = {name: str(tools.get(name) or default) for name, default in DEFAULT_TOOL_PATHS.items()}
        return cls(
            keychains=tuple(keychains),
            default_keychain=str(raw.get("default_keychain") or ""),
            **paths,
        )


# ---------------------------------------------------------------------------
# Versioned migrations
# ---------------------------------------------------------------------------

_V1_TOOL_KEYS = {
    "xcodebuildPath": "xcodebuild",
    "agvtoolPath": "agvtool",
    "xcrunPath": "xcrun",
}


def migrate_v1_to_v2(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Upgrade a legacy (camelCase) config mapping to the v2 layout.

    Pure function: the input is not modified.
    """
    tools: Dict[str, Any] = dict(raw.get("tools") or {})
    for old, new in _V1_TOOL_KEYS.items():
        if raw.get(old):
            tools[new] = raw[old]

    keychains = []
    for k in raw.get("keychains") or []:
        if not isinstance(k, Mapping):
            continue
        keychains.append(
            {
                "name": k.get("keychainName", k.get("name", "")),
                "path": k.get("keychainPath", k.get("path", "")),
                "password": k.get("keychainPassword", k.get("password", "")),
                "in_search_path": bool(k.get("inSearchPath", k.get("in_search_path", False))),
            }
        )

    return {
        "config_version": 2,
        "tools": tools,
        "keychains": keychains,
        "default_keychain": raw.get("defaultKeychain", raw.get("default_keychain", "")),
    }


_MIGRATIONS: Dict[int, Callable[[Mapping[str, Any]], Dict[str, Any]]] = {
    1: migrate_v1_to_v2,
}


def _detect_version(raw: Mapping[str, Any]) -> int:
    if "config_version" in raw:
        try:
            return int(raw["config_version"])
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid config_version: {raw['config_version']!r}")
    if any(k in raw for k in (*_V1_TOOL_KEYS, "defaultKeychain")):
        return 1
    for k in raw.get("keychains") or []:
        if isinstance(k, Mapping) and ("keychainName" in k or "keychainPath" in k):
            return 1
    return CURRENT_CONFIG_VERSION


def migrate_config(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Apply migrations until *raw* is at :data:`CURRENT_CONFIG_VERSION`."""
    version = _detect_version(raw)
    if version > CURRENT_CONFIG_VERSION:
        raise ConfigurationError(
            f"Config version {version} is newer than supported ({CURRENT_CONFIG_VERSION})."
        )
    data: Dict[str, Any] = dict(raw)
    while version < CURRENT_CONFIG_VERSION:
        step = _MIGRATIONS.get(version)
        if step is None:
            raise ConfigurationError(f"No migration from config version {version}.")
        logger.info("Migrating tool config from version %d", version)
        data = step(data)
        version = _detect_version(data)
    return data


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def apply_env_overrides(config: ToolConfig, env: Mapping[str, str]) -> ToolConfig:
    overrides = {name: env[var] for name, var in TOOL_ENV_VARS.items() if env.get(var)}
    if not overrides:
        return config
    return replace(config, **overrides)


def load_tool_config(
    path: Optional[Path] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> ToolConfig:
    """Load the tool config from *path* (optional) plus env overrides."""
    env = os.environ if env is None else env
    raw: Mapping[str, Any] = {}

    if path is not None:
        import yaml

        p = Path(path).expanduser().resolve()
        if not p.exists():
            raise ConfigurationError(f"Tool config not found: {p}")
        try:
            loaded = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {p}: {e}")
        if not isinstance(loaded, Mapping):
            raise ConfigurationError(f"Tool config must be a mapping at top level: {p}")
        raw = loaded

    config = ToolConfig.from_dict(migrate_config(raw))
    return apply_env_overrides(config, env)
